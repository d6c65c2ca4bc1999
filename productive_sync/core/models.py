"""
Pydantic models for rows written by the custom field value pass.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CustomFieldValue(BaseModel):
    """One resolved custom field value for a project or deal."""

    model_config = ConfigDict(frozen=True)

    entity_id: int
    entity_type: str
    custom_field_id: int
    custom_field_option_id: Optional[int] = None
    custom_field_name: str
    custom_field_value: Optional[str] = None
    raw_value: Optional[str] = None

    @field_validator("custom_field_value", "raw_value", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class ResolutionStats(BaseModel):
    """Per entity type counters for a resolution run."""

    entity_type: str
    found: int = 0
    processed: int = 0
    errors: int = 0

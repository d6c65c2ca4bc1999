"""
Resolve raw custom field values on projects and deals into readable rows.

Productive stores select-type custom field values as option ids. Each entity's
``custom_fields`` map is expanded into one row per field, with option ids
replaced by the option name when the option is known.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, Optional

from ..core.errors import EntityResolutionError
from ..core.models import CustomFieldValue, ResolutionStats

logger = logging.getLogger(__name__)

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def is_numeric(value: Any) -> bool:
    """Numbers and numeric strings (``"7"``, ``" 1.5e3"``); booleans are not numeric."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return bool(_NUMERIC_RE.match(value))
    return False


def parse_custom_fields(raw: Any) -> Dict[str, Any]:
    """Decode an entity's ``custom_fields`` column (JSON text or mapping)."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, bytes)) and raw:
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.warning(f"Could not decode custom_fields: {raw!r}")
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


class CustomFieldValueResolver:
    """Rebuilds resolved custom field value rows entity by entity."""

    def __init__(self, store, *, logger: Optional[logging.Logger] = None):
        """
        Args:
            store: Custom field store (``PostgresCustomFieldStore`` or a test double)
                exposing ``transaction``, ``delete_values``, ``find_field``,
                ``find_option`` and ``insert_value``
            logger: Optional logger; defaults to a module child logger
        """
        self.store = store
        self.logger = logger or logging.getLogger(f"{__name__}.resolver")

    def resolve(self, entity: Dict[str, Any], entity_type: str) -> int:
        """
        Replace the stored values of one entity.

        Existing rows for ``(entity_id, entity_type)`` are deleted and the
        current ``custom_fields`` map is inserted again inside a single
        transaction, so reprocessing an entity yields the same rows.

        Returns:
            Number of rows written

        Raises:
            EntityResolutionError: If anything failed; the transaction is rolled back
        """
        custom_fields = parse_custom_fields(entity.get("custom_fields"))
        if not custom_fields:
            return 0

        entity_id = entity.get("id")
        written = 0
        try:
            with self.store.transaction():
                self.store.delete_values(entity_id, entity_type)
                for field_id, value in custom_fields.items():
                    row = self._resolve_field(entity_id, entity_type, field_id, value)
                    if row is None:
                        continue
                    self.store.insert_value(row)
                    written += 1
        except Exception as e:
            raise EntityResolutionError(entity_type, entity_id, e) from e

        return written

    def _resolve_field(
        self,
        entity_id: Any,
        entity_type: str,
        field_id: Any,
        value: Any,
    ) -> Optional[CustomFieldValue]:
        custom_field = self.store.find_field(field_id)
        if not custom_field:
            self.logger.warning(f"Custom field {field_id} not found for {entity_type} {entity_id}")
            return None

        if isinstance(value, (list, dict)):
            value = json.dumps(value)

        option = None
        resolved = value
        if is_numeric(value):
            option = self.store.find_option(value)
            if option:
                resolved = option["name"]
                self.logger.debug(f"Found custom field option for value {value}: {resolved}")
            else:
                self.logger.warning(f"Custom field option {value} not found, using as raw value")
        else:
            self.logger.debug(
                f"Non-numeric value '{value}' for field {field_id} ({custom_field['name']}), using as raw value"
            )

        return CustomFieldValue(
            entity_id=entity_id,
            entity_type=entity_type,
            custom_field_id=field_id,
            custom_field_option_id=option["id"] if option else None,
            custom_field_name=custom_field["name"],
            custom_field_value=resolved,
            raw_value=value,
        )

    def resolve_many(self, entities: Iterable[Dict[str, Any]], entity_type: str) -> ResolutionStats:
        """Resolve each entity independently; one failure never stops the batch."""
        stats = ResolutionStats(entity_type=entity_type)
        for entity in entities:
            stats.found += 1
            try:
                self.resolve(entity, entity_type)
                stats.processed += 1
            except EntityResolutionError as e:
                self.logger.error(str(e))
                stats.errors += 1

        self.logger.info(
            f"{entity_type.capitalize()}s: {stats.processed} processed, {stats.errors} errors"
        )
        return stats

"""
Exception hierarchy shared by the fetch, resolve and sync layers.
"""

from typing import Any, Optional


class ProductiveSyncError(Exception):
    """Base class for every error raised by productive-sync."""


class ProductiveAPIError(ProductiveSyncError):
    """Productive answered with a non-2xx status."""

    def __init__(self, status: int, body: Any = None):
        self.status = status
        self.body = body
        super().__init__(f"Productive API returned {status}: {body}")


class FetchError(ProductiveSyncError):
    """A page could not be retrieved."""

    def __init__(self, page: int, message: str):
        self.page = page
        self.message = message
        super().__init__(f"page {page}: {message}")


class InvalidResponseFormat(FetchError):
    """Response body has no ``data`` list."""

    def __init__(self, page: int, message: str = "Invalid response format: missing data list"):
        super().__init__(page, message)


class IncludeRejected(FetchError):
    """The API refused the requested ``include`` parameter."""

    def __init__(self, page: int, message: str, include: str = ""):
        self.include = include
        super().__init__(page, message)


class FetchFailed(FetchError):
    """Terminal failure for a resource fetch."""


class EntityResolutionError(ProductiveSyncError):
    """Custom field values for one entity could not be resolved."""

    def __init__(self, entity_type: str, entity_id: Any, cause: Optional[BaseException] = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.cause = cause
        super().__init__(f"Error processing {entity_type} {entity_id}: {cause}")


class OrchestratorAbort(ProductiveSyncError):
    """A required sync step failed and the plan was halted."""

    def __init__(self, resource: str, error: Any):
        self.resource = resource
        self.error = error
        super().__init__(f"Failed to fetch {resource}. Aborting sync process. ({error})")


class StorageError(ProductiveSyncError):
    """Writing to the mirror store failed."""

"""
Shared error types for core services.
"""


class ValidationIssue(ValueError):
    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type
        self.error_code = error_code
        self.data = data


class EntityNotFoundError(LookupError):
    """Raised when an operation requires an entity that does not exist."""

    def __init__(self, entity_name: str):
        super().__init__(f"Entity with name {entity_name} not found")
        self.entity_name = entity_name


class GraphIntegrityError(RuntimeError):
    """Raised when the database rejects a batch on an integrity constraint."""


class StoreUnavailableError(RuntimeError):
    """Raised when the backing database cannot be reached."""

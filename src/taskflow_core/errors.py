"""Error types raised by the data access layer."""
from typing import Optional


class TaskFlowError(Exception):
    """Base class for all TaskFlow Core errors."""


class PermissionDeniedError(TaskFlowError):
    """Raised when the permission table denies an action to a role."""

    def __init__(self, message: str, role: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message)
        self.role = role
        self.action = action


class UnknownActionError(TaskFlowError):
    """Raised when the permission table is asked about an action it does not define."""

    def __init__(self, action):
        super().__init__(f"Unknown action: {action!r}")
        self.action = action


class NotFoundError(TaskFlowError):
    """Raised when an id does not resolve in the store."""

    def __init__(self, collection: str, entity_id: str):
        super().__init__(f"{collection} record not found: {entity_id}")
        self.collection = collection
        self.entity_id = entity_id


class ValidationError(TaskFlowError, ValueError):
    """Raised when a required field is missing or malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class StoreError(TaskFlowError):
    """Raised when the underlying store operation fails."""

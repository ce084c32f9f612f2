"""
Domain error taxonomy.

Every failure raised by the lifecycle core carries an ErrorKind, a human
readable message and structured details. The HTTP layer maps the kind to a
status code; nothing in this module knows about transports.
"""

import enum
from typing import Any, Dict, Iterable, Optional


class ErrorKind(str, enum.Enum):
    """Stable error kinds surfaced to API callers."""
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    CONFLICT = "CONFLICT"


class DomainError(Exception):
    """Base class for all fleet domain errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    """Referenced entity id does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, {"resource": resource, "id": resource_id})


class InvalidInputError(DomainError):
    """Missing, malformed or out-of-range field."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)


class InvalidTransitionError(DomainError):
    """Requested status change is not an edge of the entity's graph."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, entity: str, current: Any, requested: Any, allowed: Iterable[Any]):
        current_value = getattr(current, "value", current)
        requested_value = getattr(requested, "value", requested)
        allowed_values = [getattr(a, "value", a) for a in allowed]
        message = (
            f"Invalid {entity} status transition: {current_value} -> {requested_value}. "
            f"Allowed: [{', '.join(allowed_values)}]"
        )
        super().__init__(message, {
            "entity": entity,
            "current": current_value,
            "requested": requested_value,
            "allowed": allowed_values,
        })


class PreconditionFailedError(DomainError):
    """A domain rule was violated (capacity, licence, odometer, resource status)."""

    kind = ErrorKind.PRECONDITION_FAILED


class ConflictError(DomainError):
    """A uniqueness rule was violated."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)

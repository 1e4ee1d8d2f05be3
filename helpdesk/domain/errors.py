"""Domain errors.

Every failure raised by the lifecycle core is one of these. The API layer maps
them to HTTP responses; nothing in the core catches them.
"""

from __future__ import annotations


class HelpdeskError(Exception):
    """Base class for all domain failures."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(HelpdeskError):
    """Malformed or missing input."""

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class NotFoundError(HelpdeskError):
    """A ticket, user or setting does not exist, or nothing is eligible."""

    def __init__(
        self,
        resource_type: str,
        resource_id: object | None = None,
        message: str | None = None,
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        if message is None:
            message = f"{resource_type}"
            if resource_id is not None:
                message += f" with id '{resource_id}'"
            message += " not found"
        details = {"resource": resource_type}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(message, details)


class ConflictError(HelpdeskError):
    """Illegal state transition or a violated assignment invariant."""


class UnauthorizedError(HelpdeskError):
    """The acting user's role does not permit the operation."""

"""
Platform-wide exception hierarchy.

Services raise these; ``create_app`` registers one handler per type so
every blueprint returns the same status codes and JSON envelope.

Usage:
    from thinkhub.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Milestone", resource_id=42)
    raise ValidationError("tasks must be a permutation", details={"tasks": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404. Raised before any write, so the caller's unit of work
    is left untouched.

    Args:
        resource: Human-readable entity name (e.g. "Task", "Milestone").
        resource_id: The key that was looked up. Included in the message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ForbiddenError(Exception):
    """Raised when the caller lacks the membership or role an operation needs.

    Maps to HTTP 403.

    Args:
        message: Human-readable explanation.
        required_roles: Roles that would have been accepted.
    """

    def __init__(self, message: str, required_roles=None) -> None:
        self.required_roles = sorted(required_roles or [])
        super().__init__(message)


class ValidationError(Exception):
    """Raised when input is well-formed JSON but violates a business rule.

    Maps to HTTP 422. Example: a reorder request whose id list is not a
    permutation of the milestone's tasks.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique row.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)

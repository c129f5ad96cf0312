"""JSON error envelope shared by blueprints and app error handlers.

Every error response has the shape ``{"error": str, "code": str,
"details"?: dict}``. Blueprints use ``api_error`` for malformed requests
(400); service exceptions go through ``exception_response`` from the
handlers registered in ``create_app``.
"""

from __future__ import annotations

from flask import jsonify

from thinkhub.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


class E:
    """Error codes returned in the ``code`` field."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    RATE_LIMITED = "ERR_RATE_LIMITED"
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


STATUS_BY_CODE: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 422,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.METHOD_NOT_ALLOWED: 405,
    E.CONFLICT_DUPLICATE: 409,
    E.RATE_LIMITED: 429,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for *code*; unknown codes answer 400."""
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or STATUS_BY_CODE.get(code, 400)


def _details(exc) -> dict | None:
    if isinstance(exc, ForbiddenError):
        return {"required_roles": exc.required_roles} if exc.required_roles else None
    if isinstance(exc, ValidationError):
        return exc.details
    if isinstance(exc, ConflictError):
        return {"field": exc.field}
    if isinstance(exc, NotFoundError) and exc.resource_id is not None:
        return {"resource": exc.resource, "id": exc.resource_id}
    return None


_CODE_BY_EXCEPTION = (
    (NotFoundError, E.NOT_FOUND),
    (ForbiddenError, E.FORBIDDEN),
    (ValidationError, E.VALIDATION_INVALID),
    (ConflictError, E.CONFLICT_DUPLICATE),
)

SERVICE_EXCEPTIONS = tuple(cls for cls, _ in _CODE_BY_EXCEPTION)


def exception_response(exc: Exception):
    """Translate a service exception into the error envelope."""
    for cls, code in _CODE_BY_EXCEPTION:
        if isinstance(exc, cls):
            return api_error(code, str(exc), details=_details(exc))
    return api_error(E.INTERNAL, "Internal server error")

"""API error taxonomy.

Every error that reaches a client is rendered as ``{"error": ..., "message": ...}``.
``error`` is a stable machine-readable string, ``message`` is for humans, and
the HTTP status code is the authoritative signal.
"""

from typing import Any

from fastapi.responses import JSONResponse


class ApiError(Exception):
    """Base API error with an HTTP status and a stable error string."""

    status_code = 400
    default_error = "Bad request"
    default_message = "The request could not be processed."

    def __init__(
        self,
        error: str | None = None,
        message: str | None = None,
        extra: dict[str, Any] | None = None,
    ):
        self.error = error or self.default_error
        self.message = message or self.default_message
        self.extra = extra or {}
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        return error_response(self.status_code, self.error, self.message, **self.extra)


class ValidationError(ApiError):
    """Missing or malformed request fields."""

    status_code = 400
    default_error = "Validation failed"
    default_message = "The request body is invalid."


class AuthError(ApiError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_error = "Authentication required"
    default_message = "Please login to access this resource."


class ForbiddenError(ApiError):
    """CSRF failure or a resource that refuses the operation."""

    status_code = 403
    default_error = "Forbidden"
    default_message = "You are not allowed to perform this action."


class NotFoundError(ApiError):
    status_code = 404
    default_error = "Endpoint not found"
    default_message = "The requested endpoint does not exist."


class ConflictError(ApiError):
    status_code = 409
    default_error = "Conflict"
    default_message = "The resource already exists."


class RateLimitError(ApiError):
    status_code = 429
    default_error = "Rate limit exceeded"
    default_message = "Too many requests. Please try again later."


class InternalError(ApiError):
    """Uncaught failure. The message is always generic."""

    status_code = 500
    default_error = "Internal server error"
    default_message = "An unexpected error occurred. Please try again."


def error_response(
    status_code: int,
    error: str,
    message: str,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    """Build the JSON error envelope."""
    content: dict[str, Any] = {"error": error, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)

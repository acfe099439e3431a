"""Application exception hierarchy.

Every error leaves the API as ``{"error": <kind>, "message": <human>, "details"?: ...}``.
"""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception.

    ``error_code`` is the stable kind slug clients switch on; ``message`` is
    shown to humans unchanged.
    """

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.details = details

        body: dict[str, Any] = {"error": error_code, "message": message}
        if details is not None:
            body["details"] = details

        super().__init__(status_code=status_code, detail=body, headers=headers)


# ============================================================================
# Client Errors (400)
# ============================================================================


class BadRequestError(AppException):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="bad_request",
            message=message,
        )


class ValidationError(AppException):
    """Domain-level validation failure (distinct from request schema errors)."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="validation_error",
            message=message,
            details=errors or None,
        )


class ImageProcessingError(AppException):
    """Uploaded bytes could not be decoded or encoded."""

    def __init__(self, message: str = "Could not process image") -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="image_error",
            message=message,
        )


# ============================================================================
# Authentication & Authorization Exceptions (401, 403)
# ============================================================================


class AuthenticationError(AppException):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="unauthorized",
            message=message,
        )


class PermissionDeniedError(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action") -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="forbidden",
            message=message,
        )


class CSRFError(PermissionDeniedError):
    def __init__(self) -> None:
        super().__init__("CSRF token missing or invalid")


# ============================================================================
# Resource Exceptions (404, 409, 422)
# ============================================================================


class NotFoundError(AppException):
    """Resource not found.

    Drafts hidden from public callers raise this too, with the same message,
    so a response never reveals whether the row exists.
    """

    def __init__(self, resource: str, identifier: Any = None) -> None:
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} '{identifier}' not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            message=message,
        )


class ConflictError(AppException):
    def __init__(self, message: str = "A record with that value already exists.") -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="conflict",
            message=message,
        )


class SlugConflictError(ConflictError):
    def __init__(self, resource: str) -> None:
        super().__init__(f"Could not generate a unique slug for {resource}. Please try again.")


class UnprocessableEntityError(AppException):
    def __init__(self, message: str = "Request validation failed", details: Any = None) -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="unprocessable_entity",
            message=message,
            details=details,
        )


# ============================================================================
# Rate Limiting Exceptions (429)
# ============================================================================


class TooManyRequestsError(AppException):
    def __init__(self, message: str = "Too many requests. Please slow down.") -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error_code="too_many_requests",
            message=message,
        )


class RateLimitExceededError(AppException):
    """Token bucket exhausted. Rendered as a plain text body."""

    message_text = "Rate limit exceeded. Please try again later."

    def __init__(self, retry_after: int = 60) -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error_code="too_many_requests",
            message=self.message_text,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Exceeded": "true",
            },
        )


# ============================================================================
# Server Errors (500)
# ============================================================================


class DatabaseError(AppException):
    def __init__(self, message: str = "A database error occurred") -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="database_error",
            message=message,
        )


class CacheError(AppException):
    def __init__(self, message: str = "A cache error occurred") -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="cache_error",
            message=message,
        )


class InternalServerError(AppException):
    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="internal_server_error",
            message=message,
        )


def is_unique_violation(exc: BaseException) -> bool:
    """True when a DBAPI error wraps PostgreSQL SQLSTATE 23505."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is None:
        cause = getattr(orig, "__cause__", None)
        sqlstate = getattr(cause, "sqlstate", None)
    return sqlstate == "23505"

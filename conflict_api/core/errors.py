"""Application error taxonomy; exception handlers in api/handlers.py render these as JSON."""

from typing import Any, Literal

from conflict_api.db.errors import (
    ConstraintViolation,
    DatabaseConnectionError,
    QueryError,
)

AuthFailureReason = Literal["missing", "invalid", "expired"]


class AppError(Exception):
    """Base for errors that map directly onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: list[dict[str, str]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.errors = errors
        self.headers = headers

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = 422
    default_message = "Validation errors"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Authentication required"

    def __init__(self, reason: AuthFailureReason, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})
        self.reason = reason

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["reason"] = self.reason
        return body


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Insufficient permissions"


class ConflictError(AppError):
    status_code = 400
    default_message = "Request conflicts with existing data"


class RateLimitError(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later."

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        super().__init__(message, headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class PersistenceError(AppError):
    status_code = 500
    default_message = "Database unavailable"

    def __init__(self, message: str | None = None, *, retriable: bool = True) -> None:
        super().__init__(message)
        self.retriable = retriable

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["retriable"] = self.retriable
        return body


class InternalError(AppError):
    status_code = 500


def from_query_error(error: QueryError) -> AppError:
    """Translate a classified adapter failure into the error a client should see."""
    if isinstance(error, ConstraintViolation):
        return ConflictError()
    if isinstance(error, DatabaseConnectionError):
        return PersistenceError(retriable=error.retriable)
    return InternalError()

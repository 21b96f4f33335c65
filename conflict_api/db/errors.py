"""Classified failures raised by the query adapter."""


class QueryError(Exception):
    """Base for every failure surfaced by QueryAdapter.execute."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class DatabaseConnectionError(QueryError):
    """The backend could not be reached, the connection dropped, or the pool is exhausted."""

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        retriable: bool = True,
    ) -> None:
        super().__init__(message, cause=cause)
        self.retriable = retriable


class ConstraintViolation(QueryError):
    """A unique, foreign-key, check, or not-null constraint rejected the statement."""


class QueryFailed(QueryError):
    """Syntax errors, missing tables, bad parameters, and anything else the driver rejects."""

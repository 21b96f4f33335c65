"""Dual-backend persistence: query adapter, per-backend dialects, and schema setup."""

from conflict_api.db.adapter import QueryAdapter, QueryResult, create_adapter
from conflict_api.db.dialects import Backend
from conflict_api.db.errors import (
    ConstraintViolation,
    DatabaseConnectionError,
    QueryError,
    QueryFailed,
)

__all__ = [
    "Backend",
    "ConstraintViolation",
    "DatabaseConnectionError",
    "QueryAdapter",
    "QueryError",
    "QueryFailed",
    "QueryResult",
    "create_adapter",
]

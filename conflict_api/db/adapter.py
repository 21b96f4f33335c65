"""
Query adapter: one execute() over either backend.

The networked server is reached through a bounded SQLAlchemy QueuePool; the
embedded engine through a single persistent connection (StaticPool) guarded
by a lock, so concurrent callers queue on it.
"""

import logging
import threading
from collections.abc import Sequence
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from conflict_api.db.dialects import (
    Backend,
    Dialect,
    get_dialect,
    is_read_statement,
)
from conflict_api.db.errors import QueryError, QueryFailed

if TYPE_CHECKING:
    from conflict_api.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Uniform result: rows for reads (and RETURNING), counts and identity for writes."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    affected: int = 0
    insert_id: int | None = None

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        """First column of the first row, or None when there are no rows."""
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()), None)


class QueryAdapter:
    """Executes canonical $N-parameterized SQL against the configured backend."""

    def __init__(self, engine: Engine, dialect: Dialect) -> None:
        self.engine = engine
        self.dialect = dialect
        self._lock: AbstractContextManager[Any] = (
            threading.Lock() if dialect.single_connection else nullcontext()
        )

    @property
    def backend(self) -> Backend:
        return self.dialect.backend

    def execute(self, template: str, params: Sequence[Any] = ()) -> QueryResult:
        """
        Run one statement in its own transaction and return a QueryResult.

        Reads (SELECT/WITH) return rows. Writes return the affected row count and,
        for inserts, the generated id: from RETURNING id on PostgreSQL, from the
        driver's last-insert id on SQLite.

        Raises DatabaseConnectionError, ConstraintViolation, or QueryFailed.
        """
        sql, bound = self.dialect.translate(template, params)
        read = is_read_statement(template)
        try:
            with self._lock, self.engine.begin() as conn:
                if bound:
                    result = conn.exec_driver_sql(sql, bound)
                else:
                    result = conn.exec_driver_sql(sql)
                rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
                if read:
                    return QueryResult(rows=rows)
                return QueryResult(
                    rows=rows,
                    affected=result.rowcount,
                    insert_id=self.dialect.insert_id(template, result, rows),
                )
        except SQLAlchemyError as e:
            error = self.dialect.classify_error(e)
            logger.debug("Query failed (%s): %s", type(error).__name__, error.message)
            raise error from e
        except OverflowError as e:
            # Raised by the driver while binding, before SQLAlchemy can wrap it
            logger.debug("Query failed binding parameters: %s", e)
            raise QueryFailed(f"Parameter out of range: {e}", cause=e) from e

    def ping(self) -> bool:
        """Run a trivial query to verify the database is reachable."""
        try:
            self.execute("SELECT 1")
            return True
        except QueryError:
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def _normalize_postgres_url(url: str) -> str:
    # SQLAlchemy only recognizes the postgresql scheme
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgres+psycopg2://"):
        return "postgresql+psycopg2://" + url[len("postgres+psycopg2://"):]
    return url


def _create_sqlite_engine(url: str, echo: bool) -> Engine:
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        url,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=echo,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        # Off by default in SQLite; must be set per connection, outside a transaction.
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


def create_adapter(settings: "Settings") -> QueryAdapter:
    """Build the adapter for the backend selected by settings.DATABASE_URL."""
    backend = settings.database_backend
    if backend is Backend.SQLITE:
        engine = _create_sqlite_engine(settings.DATABASE_URL, settings.DEBUG)
    else:
        engine = create_engine(
            _normalize_postgres_url(settings.DATABASE_URL),
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT_SEC,
            pool_pre_ping=True,
            echo=settings.DEBUG,
        )
    logger.info("Database adapter created: backend=%s", backend.value)
    return QueryAdapter(engine, get_dialect(backend))

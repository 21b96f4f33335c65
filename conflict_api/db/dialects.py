"""
Per-backend SQL dialects.

Every backend-specific string lives here: placeholder tokens, DDL, upsert-style
seed statements, and driver error classification. Business code writes queries
once with canonical positional placeholders ($1, $2, ...) and the active
dialect rewrites them for its driver.
"""

import re
from collections.abc import Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import CursorResult

from conflict_api.db.errors import (
    ConstraintViolation,
    DatabaseConnectionError,
    QueryError,
    QueryFailed,
)

PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")

# Index DDL is identical on both engines.
INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_events_country ON events(country)",
    "CREATE INDEX IF NOT EXISTS idx_events_date ON events(date)",
    "CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type)",
)


class Backend(str, Enum):
    """Relational engine in use for a deployment; fixed for the life of the process."""

    POSTGRES = "postgresql"
    SQLITE = "sqlite"


class Dialect:
    """Base dialect; subclasses supply templates and driver-specific behavior."""

    backend: Backend
    placeholder: str
    # psycopg2 interpolates with %, so literal percent signs must be doubled
    escape_percent: bool = False
    # One shared connection (embedded engine) vs. a pool (networked server)
    single_connection: bool = False

    create_users_table: str
    create_events_table: str
    insert_user_if_absent: str
    update_password: str
    seed_event: str

    @property
    def schema_statements(self) -> tuple[str, ...]:
        return (self.create_users_table, self.create_events_table, *INDEX_STATEMENTS)

    def adapt_param(self, value: Any) -> Any:
        return value

    def translate(self, template: str, params: Sequence[Any]) -> tuple[str, tuple[Any, ...]]:
        """
        Rewrite $N placeholders into the driver's token and order params to match.

        A placeholder may appear more than once or out of order; each occurrence
        binds its own copy of the value. Raises QueryFailed for a $N with no value.
        """
        if not PLACEHOLDER_PATTERN.search(template):
            return template, ()
        if self.escape_percent:
            template = template.replace("%", "%%")
        bound: list[Any] = []

        def _substitute(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index < 1 or index > len(params):
                raise QueryFailed(
                    f"Placeholder ${index} has no bound value ({len(params)} params given)"
                )
            bound.append(self.adapt_param(params[index - 1]))
            return self.placeholder

        sql = PLACEHOLDER_PATTERN.sub(_substitute, template)
        return sql, tuple(bound)

    def insert_id(
        self, template: str, result: CursorResult, rows: list[dict[str, Any]]
    ) -> int | None:
        raise NotImplementedError

    def is_connection_failure(self, exc: sa_exc.DBAPIError) -> bool:
        raise NotImplementedError

    def classify_error(self, exc: sa_exc.SQLAlchemyError) -> QueryError:
        """Map a SQLAlchemy/driver exception onto the adapter's error kinds."""
        if isinstance(exc, sa_exc.TimeoutError):
            return DatabaseConnectionError(
                "Timed out waiting for a database connection from the pool",
                cause=exc,
                retriable=True,
            )
        if isinstance(exc, sa_exc.IntegrityError):
            return ConstraintViolation(_driver_message(exc), cause=exc)
        if isinstance(exc, sa_exc.DBAPIError) and (
            exc.connection_invalidated or self.is_connection_failure(exc)
        ):
            return DatabaseConnectionError(_driver_message(exc), cause=exc)
        return QueryFailed(_driver_message(exc), cause=exc)


class PostgresDialect(Dialect):
    backend = Backend.POSTGRES
    placeholder = "%s"
    escape_percent = True

    create_users_table = """
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            username VARCHAR(50) UNIQUE NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            role VARCHAR(20) NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """

    create_events_table = """
        CREATE TABLE IF NOT EXISTS events (
            id SERIAL PRIMARY KEY,
            country VARCHAR(100) NOT NULL,
            event_type VARCHAR(50) NOT NULL,
            fatalities INTEGER NOT NULL DEFAULT 0 CHECK (fatalities >= 0),
            date DATE NOT NULL,
            description TEXT,
            latitude DOUBLE PRECISION CHECK (latitude BETWEEN -90 AND 90),
            longitude DOUBLE PRECISION CHECK (longitude BETWEEN -180 AND 180),
            severity VARCHAR(50),
            source VARCHAR(255),
            created_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """

    insert_user_if_absent = """
        INSERT INTO users (username, password_hash, role)
        VALUES ($1, $2, $3)
        ON CONFLICT (username) DO NOTHING
        RETURNING id
    """

    update_password = """
        UPDATE users
        SET password_hash = $1, updated_at = CURRENT_TIMESTAMP
        WHERE id = $2
    """

    # $6 is the creator's username; the id is resolved in the same statement.
    seed_event = """
        INSERT INTO events (country, event_type, fatalities, date, description, created_by)
        SELECT $1, $2, $3, $4, $5, u.id
        FROM users u
        WHERE u.username = $6
          AND NOT EXISTS (
              SELECT 1 FROM events e
              WHERE e.country = $1 AND e.date = $4 AND e.description = $5
          )
    """

    def insert_id(
        self, template: str, result: CursorResult, rows: list[dict[str, Any]]
    ) -> int | None:
        # Only available when the caller appended RETURNING id
        if rows and "id" in rows[0]:
            return rows[0]["id"]
        return None

    def is_connection_failure(self, exc: sa_exc.DBAPIError) -> bool:
        return isinstance(exc, (sa_exc.OperationalError, sa_exc.InterfaceError))


class SQLiteDialect(Dialect):
    backend = Backend.SQLITE
    placeholder = "?"
    single_connection = True

    create_users_table = """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        )
    """

    create_events_table = """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            country TEXT NOT NULL,
            event_type TEXT NOT NULL,
            fatalities INTEGER NOT NULL DEFAULT 0 CHECK (fatalities >= 0),
            date TEXT NOT NULL,
            description TEXT,
            latitude REAL CHECK (latitude BETWEEN -90 AND 90),
            longitude REAL CHECK (longitude BETWEEN -180 AND 180),
            severity TEXT,
            source TEXT,
            created_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        )
    """

    insert_user_if_absent = """
        INSERT OR IGNORE INTO users (username, password_hash, role)
        VALUES ($1, $2, $3)
    """

    update_password = """
        UPDATE users
        SET password_hash = $1, updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
        WHERE id = $2
    """

    # $6 is the creator's id, resolved by the caller beforehand.
    seed_event = """
        INSERT INTO events (country, event_type, fatalities, date, description, created_by)
        SELECT $1, $2, $3, $4, $5, $6
        WHERE NOT EXISTS (
            SELECT 1 FROM events e
            WHERE e.country = $1 AND e.date = $4 AND e.description = $5
        )
    """

    # sqlite3 reports these as OperationalError alongside syntax errors.
    _CONNECTION_MARKERS = (
        "unable to open database",
        "database is locked",
        "disk i/o error",
        "database disk image is malformed",
        "cannot operate on a closed database",
    )

    def adapt_param(self, value: Any) -> Any:
        # Stored as ISO-8601 text so lexical comparison matches calendar order
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value

    def insert_id(
        self, template: str, result: CursorResult, rows: list[dict[str, Any]]
    ) -> int | None:
        if statement_keyword(template) != "INSERT" or not result.rowcount:
            return None
        return result.lastrowid

    def is_connection_failure(self, exc: sa_exc.DBAPIError) -> bool:
        if isinstance(exc, sa_exc.InterfaceError):
            return True
        if not isinstance(exc, sa_exc.OperationalError):
            return False
        message = _driver_message(exc).lower()
        return any(marker in message for marker in self._CONNECTION_MARKERS)


_DIALECTS: dict[Backend, Dialect] = {
    Backend.POSTGRES: PostgresDialect(),
    Backend.SQLITE: SQLiteDialect(),
}


def get_dialect(backend: Backend) -> Dialect:
    return _DIALECTS[backend]


def statement_keyword(template: str) -> str:
    """First SQL keyword of a statement, upper-cased ('' for blank input)."""
    stripped = template.lstrip().lstrip("(").lstrip()
    if not stripped:
        return ""
    return stripped.split(None, 1)[0].upper()


def is_read_statement(template: str) -> bool:
    return statement_keyword(template) in ("SELECT", "WITH")


def _driver_message(exc: sa_exc.SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)

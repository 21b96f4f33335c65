"""Unit tests for conflict_api.db.dialects: placeholder rewriting, statement kinds, error classification."""

import unittest
from datetime import date, datetime

from sqlalchemy import exc as sa_exc

from conflict_api.db.dialects import (
    Backend,
    PostgresDialect,
    SQLiteDialect,
    get_dialect,
    is_read_statement,
    statement_keyword,
)
from conflict_api.db.errors import (
    ConstraintViolation,
    DatabaseConnectionError,
    QueryFailed,
)


def _dbapi_error(cls: type[sa_exc.DBAPIError], message: str) -> sa_exc.DBAPIError:
    return cls("SELECT 1", (), Exception(message))


class TestPlaceholderTranslation(unittest.TestCase):
    """$N placeholders become the driver's token; params follow occurrence order."""

    def test_sqlite_uses_question_marks(self) -> None:
        sql, params = SQLiteDialect().translate(
            "SELECT * FROM users WHERE username = $1 AND role = $2", ["admin", "admin"]
        )
        self.assertEqual(sql, "SELECT * FROM users WHERE username = ? AND role = ?")
        self.assertEqual(params, ("admin", "admin"))

    def test_postgres_uses_format_tokens(self) -> None:
        sql, params = PostgresDialect().translate("SELECT * FROM events WHERE id = $1", [7])
        self.assertEqual(sql, "SELECT * FROM events WHERE id = %s")
        self.assertEqual(params, (7,))

    def test_repeated_and_out_of_order_placeholders(self) -> None:
        sql, params = SQLiteDialect().translate(
            "SELECT $2, $1 WHERE x = $2", ["first", "second"]
        )
        self.assertEqual(sql, "SELECT ?, ? WHERE x = ?")
        self.assertEqual(params, ("second", "first", "second"))

    def test_postgres_escapes_literal_percent_when_binding(self) -> None:
        sql, _ = PostgresDialect().translate(
            "SELECT to_char(now(), 'HH24%') WHERE id = $1", [1]
        )
        self.assertEqual(sql, "SELECT to_char(now(), 'HH24%%') WHERE id = %s")

    def test_no_placeholders_leaves_sql_untouched(self) -> None:
        template = "SELECT strftime('%Y', 'now')"
        for dialect in (SQLiteDialect(), PostgresDialect()):
            sql, params = dialect.translate(template, [])
            self.assertEqual(sql, template)
            self.assertEqual(params, ())

    def test_missing_param_raises_query_failed(self) -> None:
        with self.assertRaises(QueryFailed):
            SQLiteDialect().translate("SELECT $1, $2", ["only-one"])

    def test_zero_placeholder_raises_query_failed(self) -> None:
        with self.assertRaises(QueryFailed):
            PostgresDialect().translate("SELECT $0", ["x"])

    def test_sqlite_binds_dates_as_iso_text(self) -> None:
        _, params = SQLiteDialect().translate(
            "SELECT $1, $2", [date(2024, 1, 15), datetime(2024, 1, 15, 8, 30)]
        )
        self.assertEqual(params, ("2024-01-15", "2024-01-15T08:30:00"))

    def test_postgres_passes_dates_through(self) -> None:
        _, params = PostgresDialect().translate("SELECT $1", [date(2024, 1, 15)])
        self.assertEqual(params, (date(2024, 1, 15),))


class TestStatementKind(unittest.TestCase):
    def test_select_and_with_are_reads(self) -> None:
        self.assertTrue(is_read_statement("  select 1"))
        self.assertTrue(is_read_statement("\nWITH t AS (SELECT 1) SELECT * FROM t"))
        self.assertTrue(is_read_statement("(SELECT 1)"))

    def test_writes_and_ddl_are_not_reads(self) -> None:
        for sql in ("INSERT INTO t VALUES (1)", "update t set x = 1", "CREATE TABLE t (x INT)"):
            self.assertFalse(is_read_statement(sql), sql)

    def test_keyword_of_blank_statement(self) -> None:
        self.assertEqual(statement_keyword("   "), "")
        self.assertEqual(statement_keyword("insert into t"), "INSERT")


class TestErrorClassification(unittest.TestCase):
    def test_integrity_error_is_constraint_violation(self) -> None:
        for dialect in (SQLiteDialect(), PostgresDialect()):
            error = dialect.classify_error(
                _dbapi_error(sa_exc.IntegrityError, "UNIQUE constraint failed: users.username")
            )
            self.assertIsInstance(error, ConstraintViolation)
            self.assertIn("UNIQUE", error.message)

    def test_pool_timeout_is_retriable_connection_error(self) -> None:
        error = PostgresDialect().classify_error(sa_exc.TimeoutError("QueuePool limit reached"))
        self.assertIsInstance(error, DatabaseConnectionError)
        self.assertTrue(error.retriable)

    def test_postgres_operational_error_is_connection_error(self) -> None:
        error = PostgresDialect().classify_error(
            _dbapi_error(sa_exc.OperationalError, "could not connect to server")
        )
        self.assertIsInstance(error, DatabaseConnectionError)

    def test_postgres_programming_error_is_query_failed(self) -> None:
        error = PostgresDialect().classify_error(
            _dbapi_error(sa_exc.ProgrammingError, 'relation "nope" does not exist')
        )
        self.assertIsInstance(error, QueryFailed)

    def test_sqlite_syntax_error_is_query_failed(self) -> None:
        error = SQLiteDialect().classify_error(
            _dbapi_error(sa_exc.OperationalError, 'near "SELEC": syntax error')
        )
        self.assertIsInstance(error, QueryFailed)

    def test_sqlite_open_failure_is_connection_error(self) -> None:
        error = SQLiteDialect().classify_error(
            _dbapi_error(sa_exc.OperationalError, "unable to open database file")
        )
        self.assertIsInstance(error, DatabaseConnectionError)

    def test_invalidated_connection_is_connection_error(self) -> None:
        exc = sa_exc.DBAPIError("SELECT 1", (), Exception("server closed"), connection_invalidated=True)
        self.assertIsInstance(SQLiteDialect().classify_error(exc), DatabaseConnectionError)


class TestDialectTemplates(unittest.TestCase):
    def test_lookup_by_backend(self) -> None:
        self.assertIsInstance(get_dialect(Backend.SQLITE), SQLiteDialect)
        self.assertIsInstance(get_dialect(Backend.POSTGRES), PostgresDialect)

    def test_identity_syntax_differs(self) -> None:
        self.assertIn("SERIAL PRIMARY KEY", PostgresDialect().create_users_table)
        self.assertIn("AUTOINCREMENT", SQLiteDialect().create_users_table)

    def test_schema_statements_include_indexes(self) -> None:
        statements = SQLiteDialect().schema_statements
        self.assertEqual(len(statements), 5)
        self.assertTrue(any("idx_events_country" in s for s in statements))
        self.assertTrue(any("idx_events_date" in s for s in statements))
        self.assertTrue(any("idx_events_type" in s for s in statements))


if __name__ == "__main__":
    unittest.main()

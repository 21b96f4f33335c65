"""Tests for schema initialization: idempotence, seeded accounts, and sample events."""

import os
import unittest
from unittest.mock import MagicMock

from conflict_api.core.security import verify_password
from conflict_api.db.adapter import create_adapter
from conflict_api.db.errors import QueryFailed
from conflict_api.db.schema import (
    DEFAULT_ACCOUNTS,
    SAMPLE_EVENTS,
    create_schema,
    initialize_database,
    seed_sample_events,
)
from conflict_api.schemas.events import EVENT_TYPES
from tests.support import make_adapter, make_settings


class SchemaInitializationChecks:
    """Assertions shared by the SQLite and PostgreSQL runs."""

    db = None
    settings = None

    def _count(self, sql: str, params: list | None = None) -> int:
        return int(self.db.execute(sql, params or []).scalar())

    def test_creates_one_admin_and_one_user(self) -> None:
        initialize_database(self.db, self.settings)
        rows = self.db.execute("SELECT username, role FROM users ORDER BY username").rows
        self.assertEqual(rows, [{"username": "admin", "role": "admin"}, {"username": "user", "role": "user"}])

    def test_seeded_passwords_are_hashed_and_verify(self) -> None:
        initialize_database(self.db, self.settings)
        for username, password, _ in DEFAULT_ACCOUNTS:
            stored = self.db.execute(
                "SELECT password_hash FROM users WHERE username = $1", [username]
            ).scalar()
            self.assertNotEqual(stored, password)
            self.assertTrue(verify_password(password, stored))

    def test_running_twice_is_idempotent(self) -> None:
        initialize_database(self.db, self.settings)
        initialize_database(self.db, self.settings)
        self.assertEqual(self._count("SELECT COUNT(*) FROM users WHERE username = $1", ["admin"]), 1)
        self.assertEqual(self._count("SELECT COUNT(*) FROM users WHERE username = $1", ["user"]), 1)
        self.assertEqual(self._count("SELECT COUNT(*) FROM events"), len(SAMPLE_EVENTS))

    def test_existing_account_is_never_overwritten(self) -> None:
        create_schema(self.db)
        self.db.execute(
            "INSERT INTO users (username, password_hash, role) VALUES ($1, $2, $3)",
            ["admin", "pre-existing-hash", "admin"],
        )
        initialize_database(self.db, self.settings)
        stored = self.db.execute(
            "SELECT password_hash FROM users WHERE username = $1", ["admin"]
        ).scalar()
        self.assertEqual(stored, "pre-existing-hash")

    def test_sample_events_attributed_to_admin(self) -> None:
        initialize_database(self.db, self.settings)
        admin_id = self.db.execute("SELECT id FROM users WHERE username = $1", ["admin"]).scalar()
        creators = {r["created_by"] for r in self.db.execute("SELECT created_by FROM events").rows}
        self.assertEqual(creators, {admin_id})

    def test_sample_events_use_known_event_types(self) -> None:
        for sample in SAMPLE_EVENTS:
            self.assertIn(sample.event_type, EVENT_TYPES)
            self.assertGreaterEqual(len(sample.description), 10)

    def test_sample_events_can_be_disabled(self) -> None:
        initialize_database(self.db, make_settings(SEED_SAMPLE_DATA=False))
        self.assertEqual(self._count("SELECT COUNT(*) FROM events"), 0)

    def test_seed_events_again_inserts_nothing(self) -> None:
        initialize_database(self.db, self.settings)
        self.assertEqual(seed_sample_events(self.db), 0)


class TestSQLiteSchema(SchemaInitializationChecks, unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.db = make_adapter()
        self.addCleanup(self.db.dispose)

    def test_sample_events_skipped_without_admin(self) -> None:
        create_schema(self.db)
        self.assertEqual(seed_sample_events(self.db), 0)


@unittest.skipUnless(os.environ.get("TEST_POSTGRES_URL"), "TEST_POSTGRES_URL not set")
class TestPostgresSchema(SchemaInitializationChecks, unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings(DATABASE_URL=os.environ["TEST_POSTGRES_URL"])
        self.db = create_adapter(self.settings)
        self.addCleanup(self.db.dispose)
        self.db.execute("DROP TABLE IF EXISTS events")
        self.db.execute("DROP TABLE IF EXISTS users")


class TestInitializationFailure(unittest.TestCase):
    """Initialization errors propagate to the caller."""

    def test_query_error_propagates(self) -> None:
        db = MagicMock()
        db.dialect.schema_statements = ("CREATE TABLE broken",)
        db.execute.side_effect = QueryFailed("syntax error")
        with self.assertRaises(QueryFailed):
            initialize_database(db, make_settings())


if __name__ == "__main__":
    unittest.main()

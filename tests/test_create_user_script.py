"""Tests for the create_user operator script."""

import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from conflict_api.core.security import verify_password
from conflict_api.db.adapter import create_adapter
from conflict_api.scripts import create_user
from tests.support import make_settings


class TestCreateUserScript(unittest.TestCase):
    def setUp(self) -> None:
        tmp = self.enterContext(tempfile.TemporaryDirectory())
        self.db_path = Path(tmp) / "users.sqlite"
        self.settings = make_settings(DATABASE_URL=f"sqlite:///{self.db_path}")
        self.enterContext(patch.object(create_user, "get_settings", return_value=self.settings))

    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = create_user.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def _stored_user(self, username: str) -> dict | None:
        db = create_adapter(self.settings)
        try:
            return db.execute(
                "SELECT username, password_hash, role FROM users WHERE username = $1", [username]
            ).first()
        finally:
            db.dispose()

    def test_creates_user_with_role(self) -> None:
        code, out, _ = self._run("analyst", "secret123", "admin")
        self.assertEqual(code, 0)
        self.assertIn("Created user 'analyst'", out)
        row = self._stored_user("analyst")
        self.assertEqual(row["role"], "admin")
        self.assertTrue(verify_password("secret123", row["password_hash"]))

    def test_default_role_is_user(self) -> None:
        self.assertEqual(self._run("viewer", "secret123")[0], 0)
        self.assertEqual(self._stored_user("viewer")["role"], "user")

    def test_existing_user_is_not_replaced(self) -> None:
        self._run("analyst", "secret123")
        code, _, err = self._run("analyst", "another-password")
        self.assertEqual(code, 1)
        self.assertIn("already exists", err)
        row = self._stored_user("analyst")
        self.assertTrue(verify_password("secret123", row["password_hash"]))

    def test_update_password(self) -> None:
        self._run("analyst", "secret123")
        code, _, _ = self._run("analyst", "rotated-password", "--update-password")
        self.assertEqual(code, 0)
        row = self._stored_user("analyst")
        self.assertTrue(verify_password("rotated-password", row["password_hash"]))
        self.assertFalse(verify_password("secret123", row["password_hash"]))

    def test_update_password_for_missing_user(self) -> None:
        code, _, err = self._run("ghost", "secret123", "--update-password")
        self.assertEqual(code, 1)
        self.assertIn("does not exist", err)

    def test_rejects_invalid_input(self) -> None:
        self.assertEqual(self._run("bad name!", "secret123")[0], 1)
        self.assertEqual(self._run("ab", "secret123")[0], 1)
        self.assertEqual(self._run("analyst", "123")[0], 1)
        self.assertFalse(self.db_path.exists())


if __name__ == "__main__":
    unittest.main()

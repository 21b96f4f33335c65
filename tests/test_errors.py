"""Tests for the error taxonomy and its mapping from adapter failures."""

import unittest

from conflict_api.core.errors import (
    AuthenticationError,
    ConflictError,
    InternalError,
    PersistenceError,
    RateLimitError,
    ValidationError,
    from_query_error,
)
from conflict_api.db.errors import ConstraintViolation, DatabaseConnectionError, QueryFailed


class TestFromQueryError(unittest.TestCase):
    def test_constraint_violation_is_client_error(self) -> None:
        error = from_query_error(ConstraintViolation("duplicate key"))
        self.assertIsInstance(error, ConflictError)
        self.assertEqual(error.status_code, 400)

    def test_connection_error_keeps_retriable_flag(self) -> None:
        for retriable in (True, False):
            error = from_query_error(DatabaseConnectionError("down", retriable=retriable))
            self.assertIsInstance(error, PersistenceError)
            self.assertEqual(error.to_body()["retriable"], retriable)

    def test_query_failure_hides_driver_message(self) -> None:
        error = from_query_error(QueryFailed('relation "events" does not exist'))
        self.assertIsInstance(error, InternalError)
        self.assertNotIn("relation", error.message)


class TestErrorBodies(unittest.TestCase):
    def test_authentication_error_carries_reason_and_challenge(self) -> None:
        error = AuthenticationError("expired", "Token has expired")
        self.assertEqual(error.status_code, 401)
        self.assertEqual(
            error.to_body(),
            {"success": False, "message": "Token has expired", "reason": "expired"},
        )
        self.assertEqual(error.headers, {"WWW-Authenticate": "Bearer"})

    def test_validation_error_lists_fields(self) -> None:
        error = ValidationError(errors=[{"fatalities": "must be >= 0"}])
        self.assertEqual(error.to_body()["errors"], [{"fatalities": "must be >= 0"}])
        self.assertEqual(error.message, "Validation errors")

    def test_rate_limit_sets_retry_after(self) -> None:
        error = RateLimitError(42)
        self.assertEqual(error.status_code, 429)
        self.assertEqual(error.headers, {"Retry-After": "42"})


if __name__ == "__main__":
    unittest.main()

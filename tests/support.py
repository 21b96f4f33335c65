"""Shared builders for tests: isolated settings and in-memory SQLite adapters."""

from typing import Any

from conflict_api.core.config import Settings
from conflict_api.db.adapter import QueryAdapter, create_adapter

TEST_SECRET = "test-secret-key"


def make_settings(**overrides: Any) -> Settings:
    """Settings that ignore .env: in-memory SQLite, cheap bcrypt, generous rate limits."""
    values: dict[str, Any] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "LOGIN_RATE_LIMIT_MAX": 1000,
        "GLOBAL_RATE_LIMIT_MAX": 10000,
        "SEED_SAMPLE_DATA": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_adapter(**overrides: Any) -> QueryAdapter:
    return create_adapter(make_settings(**overrides))

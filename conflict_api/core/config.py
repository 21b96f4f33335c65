"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from conflict_api.db.dialects import Backend

# Allowed URL schemes for DATABASE_URL, grouped by backend.
POSTGRES_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)
SQLITE_URL_PREFIXES = ("sqlite://",)


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Backend is chosen by URL scheme: sqlite:// (embedded file) or postgresql:// (pooled server)
    DATABASE_URL: str = "sqlite:///./data/database.sqlite"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    # Seconds a request waits for a pooled connection before failing with a retriable error
    DB_POOL_TIMEOUT_SEC: float = 10.0

    # JWT authentication
    JWT_SECRET: SecretStr = SecretStr("change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_HOURS: int = 24
    JWT_REFRESH_EXPIRE_DAYS: int = 7

    # Bcrypt cost (rounds)
    BCRYPT_ROUNDS: int = 12

    # Login attempts allowed per client within the window
    LOGIN_RATE_LIMIT_MAX: int = 5
    LOGIN_RATE_LIMIT_WINDOW_SEC: int = 900

    # Requests allowed per client within the window, across all routes
    GLOBAL_RATE_LIMIT_MAX: int = 100
    GLOBAL_RATE_LIMIT_WINDOW_SEC: int = 900

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001"

    SEED_SAMPLE_DATA: bool = True

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        v = v.strip()
        if not any(v.startswith(p) for p in POSTGRES_URL_PREFIXES + SQLITE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL URL (postgresql://...) "
                "or a SQLite URL (sqlite:///path/to/file.sqlite)"
            )
        return v

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        if v < 1 or v > 100:
            raise ValueError("DB_POOL_SIZE must be between 1 and 100")
        return v

    @field_validator("DB_MAX_OVERFLOW")
    @classmethod
    def validate_max_overflow(cls, v: int) -> int:
        if v < 0 or v > 100:
            raise ValueError("DB_MAX_OVERFLOW must be between 0 and 100")
        return v

    @field_validator("DB_POOL_TIMEOUT_SEC")
    @classmethod
    def validate_pool_timeout(cls, v: float) -> float:
        if v <= 0 or v > 300:
            raise ValueError("DB_POOL_TIMEOUT_SEC must be greater than 0 and at most 300")
        return v

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        return v.strip()

    @field_validator("JWT_EXPIRE_HOURS")
    @classmethod
    def validate_jwt_expire_hours(cls, v: int) -> int:
        if v < 1 or v > 720:
            raise ValueError("JWT_EXPIRE_HOURS must be between 1 and 720 (1 hour to 30 days)")
        return v

    @field_validator("JWT_REFRESH_EXPIRE_DAYS")
    @classmethod
    def validate_jwt_refresh_expire_days(cls, v: int) -> int:
        if v < 1 or v > 90:
            raise ValueError("JWT_REFRESH_EXPIRE_DAYS must be between 1 and 90")
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        # bcrypt itself rejects anything outside 4..31
        if v < 4 or v > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @field_validator("LOGIN_RATE_LIMIT_MAX", "GLOBAL_RATE_LIMIT_MAX")
    @classmethod
    def validate_rate_limit_max(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Rate limit maximum must be at least 1")
        return v

    @field_validator("LOGIN_RATE_LIMIT_WINDOW_SEC", "GLOBAL_RATE_LIMIT_WINDOW_SEC")
    @classmethod
    def validate_rate_limit_window(cls, v: int) -> int:
        if v < 1 or v > 86400:
            raise ValueError("Rate limit window must be between 1 and 86400 seconds")
        return v

    @property
    def database_backend(self) -> Backend:
        """Backend selected by DATABASE_URL scheme."""
        if self.DATABASE_URL.startswith(SQLITE_URL_PREFIXES):
            return Backend.SQLITE
        return Backend.POSTGRES

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()

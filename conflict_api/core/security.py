"""Password hashing and JWT issuance/verification for authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
import jwt

from conflict_api.core.config import Settings

# Default bcrypt cost; Settings.BCRYPT_ROUNDS overrides it at runtime.
DEFAULT_BCRYPT_ROUNDS = 12

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

ROLES = ("user", "admin")

TokenType = Literal["access", "refresh"]
TokenFailure = Literal["malformed", "invalid_signature", "expired"]


def hash_password(plain_password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenError(Exception):
    """Token could not be verified; reason says why."""

    def __init__(self, reason: TokenFailure, message: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class TokenIdentity:
    """Identity claims recovered from a verified token."""

    user_id: int
    username: str
    role: str
    token_type: TokenType = "access"


class TokenService:
    """
    Issues and verifies signed, expiring bearer tokens.

    Verification is pure computation over the token and the process-wide
    signing key; there is no server-side token store, so a token stays valid
    until it expires or the key is rotated.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=24),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(hours=settings.JWT_EXPIRE_HOURS),
            refresh_ttl=timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
        )

    def issue(
        self,
        user_id: int,
        username: str,
        role: str,
        token_type: TokenType = "access",
        now: datetime | None = None,
    ) -> str:
        """Create a JWT with sub (user id), username, role, type, iat, and exp."""
        issued_at = now or datetime.now(UTC)
        ttl = self.access_ttl if token_type == "access" else self.refresh_ttl
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "username": username,
            "role": role,
            "type": token_type,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str, expected_type: TokenType = "access") -> TokenIdentity:
        """
        Decode and validate a JWT; return its identity claims.

        Raises TokenError with reason 'expired' (valid signature, past exp),
        'invalid_signature', or 'malformed' (undecodable, missing/ill-typed
        claims, or a token of the wrong type).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenError("expired", "Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise TokenError("invalid_signature", "Token signature is invalid") from e
        except jwt.PyJWTError as e:
            raise TokenError("malformed", "Token is malformed") from e

        if payload.get("type", "access") != expected_type:
            raise TokenError("malformed", f"Expected a {expected_type} token")
        username = payload.get("username")
        role = payload.get("role")
        if not isinstance(username, str) or role not in ROLES:
            raise TokenError("malformed", "Invalid token payload")
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise TokenError("malformed", "Invalid token payload") from e
        return TokenIdentity(
            user_id=user_id, username=username, role=role, token_type=expected_type
        )

"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from conflict_api.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
)

Role = Literal["user", "admin"]


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        pattern=USERNAME_PATTERN,
        description="Letters, numbers, and underscores",
    )
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login")


class TokenPair(BaseModel):
    """JWT access and refresh tokens returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class UserOut(BaseModel):
    """Public user fields (no password hash)."""

    id: int
    username: str
    role: Role
    created_at: datetime | None = None


class LoginData(BaseModel):
    user: UserOut
    tokens: TokenPair


class MeData(BaseModel):
    user: UserOut


class CurrentUser(BaseModel):
    """Authenticated identity (id, username, role) decoded from the bearer token."""

    id: int
    username: str
    role: Role

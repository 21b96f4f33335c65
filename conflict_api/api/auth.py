"""JWT login/refresh and the access-control dependencies (get_current_user, require_role)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from conflict_api.core.database import get_db
from conflict_api.core.errors import (
    AuthenticationError,
    AuthorizationError,
    RateLimitError,
)
from conflict_api.core.security import (
    TokenError,
    TokenService,
    verify_password,
)
from conflict_api.db.adapter import QueryAdapter
from conflict_api.schemas.auth import (
    CurrentUser,
    LoginData,
    LoginRequest,
    MeData,
    RefreshRequest,
    Role,
    TokenPair,
    UserOut,
)
from conflict_api.schemas.common import ApiResponse
from conflict_api.services.rate_limit import SlidingWindowRateLimiter
from conflict_api.services.users import get_user_by_id, get_user_by_username

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def enforce_login_rate_limit(request: Request) -> None:
    """Dependency: reject with 429 once a client exceeds the login attempt budget."""
    limiter: SlidingWindowRateLimiter = request.app.state.login_limiter
    client = request.client.host if request.client else "unknown"
    retry_after = limiter.hit(client)
    if retry_after is not None:
        logger.warning("Auth rate limit exceeded: client=%s path=%s", client, request.url.path)
        raise RateLimitError(
            retry_after, "Too many authentication attempts, please try again later."
        )


def _issue_token_pair(tokens: TokenService, user: UserOut) -> TokenPair:
    return TokenPair(
        access_token=tokens.issue(user.id, user.username, user.role),
        refresh_token=tokens.issue(user.id, user.username, user.role, token_type="refresh"),
        expires_in=int(tokens.access_ttl.total_seconds()),
    )


def _auth_error_from(error: TokenError) -> AuthenticationError:
    if error.reason == "expired":
        return AuthenticationError("expired", "Token has expired")
    return AuthenticationError("invalid", "Invalid token")


@router.post(
    "/login",
    response_model=ApiResponse[LoginData],
    dependencies=[Depends(enforce_login_rate_limit)],
)
def login(
    body: LoginRequest,
    db: Annotated[QueryAdapter, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> ApiResponse[LoginData]:
    """
    Authenticate with username and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    row = get_user_by_username(db, body.username)
    # Same response for unknown user and wrong password
    if row is None or not verify_password(body.password, row["password_hash"]):
        logger.info("Failed login: username=%s", body.username)
        raise AuthenticationError("invalid", "Invalid username or password")

    user = UserOut.model_validate(row)
    logger.info("Login succeeded: user_id=%s role=%s", user.id, user.role)
    return ApiResponse[LoginData](
        message="Login successful",
        data=LoginData(user=user, tokens=_issue_token_pair(tokens, user)),
    )


@router.post(
    "/refresh",
    response_model=ApiResponse[LoginData],
    dependencies=[Depends(enforce_login_rate_limit)],
)
def refresh(
    body: RefreshRequest,
    db: Annotated[QueryAdapter, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> ApiResponse[LoginData]:
    """Exchange a refresh token for a new token pair; role is re-read from the user row."""
    try:
        identity = tokens.verify(body.refresh_token, expected_type="refresh")
    except TokenError as e:
        raise _auth_error_from(e) from e
    row = get_user_by_id(db, identity.user_id)
    if row is None:
        raise AuthenticationError("invalid", "User no longer exists")
    user = UserOut.model_validate(row)
    return ApiResponse[LoginData](
        message="Token refreshed",
        data=LoginData(user=user, tokens=_issue_token_pair(tokens, user)),
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token and return its identity.

    No database round-trip; the identity comes from the verified claims.
    Raises 401 with reason missing, invalid, or expired.
    """
    if credentials is None:
        raise AuthenticationError("missing", "Access token required")
    try:
        identity = tokens.verify(credentials.credentials)
    except TokenError as e:
        raise _auth_error_from(e) from e
    return CurrentUser(id=identity.user_id, username=identity.username, role=identity.role)


def require_role(required: Role) -> Callable[[CurrentUser], CurrentUser]:
    """Build a dependency that authenticates, then requires the given role (403 otherwise)."""

    def _require_role(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role != required:
            logger.info(
                "Forbidden: user_id=%s role=%s required=%s",
                current_user.id,
                current_user.role,
                required,
            )
            raise AuthorizationError(f"{required.capitalize()} access required")
        return current_user

    return _require_role


require_admin = require_role("admin")


@router.get("/me", response_model=ApiResponse[MeData])
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[QueryAdapter, Depends(get_db)],
) -> ApiResponse[MeData]:
    """Return the authenticated user's current record."""
    row = get_user_by_id(db, current_user.id)
    if row is None:
        raise AuthenticationError("invalid", "User no longer exists")
    return ApiResponse[MeData](data=MeData(user=UserOut.model_validate(row)))

"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from conflict_api.api import health
from conflict_api.api import router as api_router
from conflict_api.api.handlers import error_response, register_exception_handlers
from conflict_api.core.config import Settings, get_settings
from conflict_api.core.errors import RateLimitError
from conflict_api.core.logging import configure_logging
from conflict_api.core.security import TokenService
from conflict_api.db.adapter import create_adapter
from conflict_api.db.schema import initialize_database
from conflict_api.services.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "no-referrer",
}


async def add_security_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def enforce_global_rate_limit(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Per-client request budget across every route; 429 once exhausted."""
    limiter: SlidingWindowRateLimiter = request.app.state.global_limiter
    client = request.client.host if request.client else "unknown"
    retry_after = limiter.hit(client)
    if retry_after is not None:
        logger.warning("Global rate limit exceeded: client=%s path=%s", client, request.url.path)
        return error_response(RateLimitError(retry_after))
    return await call_next(request)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app. The database is opened and initialized when the app starts."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = create_adapter(settings)
        try:
            # Must finish before serving; any failure aborts startup.
            await run_in_threadpool(initialize_database, db, settings)
        except Exception:
            logger.exception("Database initialization failed; aborting startup")
            db.dispose()
            raise
        app.state.db = db
        logger.info(
            "Conflict Events API ready: env=%s backend=%s prefix=%s",
            settings.APP_ENV,
            db.backend.value,
            settings.API_PREFIX,
        )
        try:
            yield
        finally:
            db.dispose()

    app = FastAPI(
        title="Conflict Events API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tokens = TokenService.from_settings(settings)
    app.state.login_limiter = SlidingWindowRateLimiter(
        max_attempts=settings.LOGIN_RATE_LIMIT_MAX,
        window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SEC,
    )
    app.state.global_limiter = SlidingWindowRateLimiter(
        max_attempts=settings.GLOBAL_RATE_LIMIT_MAX,
        window_seconds=settings.GLOBAL_RATE_LIMIT_WINDOW_SEC,
    )

    # Last added runs first: CORS, then security headers, then the global limit.
    app.middleware("http")(enforce_global_rate_limit)
    app.middleware("http")(add_security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_exception_handlers(app, settings)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(health.router, prefix="/health", tags=["health"])

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Conflict Events API"}

    return app


app = create_app()

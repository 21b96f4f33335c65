"""Exception handlers that render every failure as the JSON error envelope."""

import logging
import traceback
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from conflict_api.core.config import Settings
from conflict_api.core.errors import AppError, ValidationError, from_query_error
from conflict_api.db.errors import QueryError

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def _envelope(
    body: dict[str, Any], status_code: int, headers: dict[str, str] | None = None
) -> JSONResponse:
    body["timestamp"] = datetime.now(UTC).isoformat()
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def error_response(exc: AppError) -> JSONResponse:
    """Render an AppError as the envelope; usable outside exception handlers (middleware)."""
    return _envelope(exc.to_body(), exc.status_code, exc.headers)


def _field_name(loc: Sequence[Any]) -> str:
    """'fatalities' for ('body', 'fatalities'); the location itself when there is no field."""
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Attach handlers; in prod, 500 responses never carry exception details."""

    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc.message,
            )
        return error_response(exc)

    async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
        logger.error(
            "Database error on %s %s (%s): %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.message,
        )
        return await app_error_handler(request, from_query_error(exc))

    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {_field_name(err.get("loc", ())): err.get("msg", "Invalid value")}
            for err in exc.errors()
        ]
        return await app_error_handler(request, ValidationError(errors=errors))

    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            message = "Route not found"
        elif isinstance(exc.detail, str):
            message = exc.detail
        else:
            message = "Request failed"
        return _envelope(
            {"success": False, "message": message},
            exc.status_code,
            getattr(exc, "headers", None),
        )

    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body: dict[str, Any] = {"success": False, "message": "Internal server error"}
        if settings.APP_ENV != "prod":
            body["message"] = str(exc) or type(exc).__name__
            body["stack"] = "".join(traceback.format_exception(exc))
        return _envelope(body, 500)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(QueryError, query_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

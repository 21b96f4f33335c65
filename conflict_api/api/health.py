"""Health check endpoint; probes the database with SELECT 1."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from conflict_api.core.database import check_db_connected, get_db
from conflict_api.db.adapter import QueryAdapter
from conflict_api.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    request: Request,
    db: Annotated[QueryAdapter, Depends(get_db)],
) -> HealthResponse:
    """
    Service status for load balancers and monitoring.
    Reports degraded rather than failing when the database is unreachable.
    """
    connected = check_db_connected(db)
    if not connected:
        logger.warning("Health check: database unreachable (backend=%s)", db.backend.value)
    return HealthResponse(
        status="ok" if connected else "degraded",
        environment=request.app.state.settings.APP_ENV,
        backend=db.backend.value,
        database="connected" if connected else "disconnected",
    )

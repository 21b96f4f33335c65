"""Health check response: service status plus the database probe result."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Status is degraded (still HTTP 200) when the database probe fails."""

    status: Literal["ok", "degraded"]
    environment: str = Field(description="APP_ENV of this process (dev or prod)")
    backend: Literal["postgresql", "sqlite"]
    database: Literal["connected", "disconnected"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

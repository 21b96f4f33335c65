"""Response envelope shared by every endpoint."""

from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Successful response: {success, message, data, timestamp}."""

    success: bool = Field(default=True, description="Always true for successful responses")
    message: str = Field(default="Success", description="Human-readable summary")
    data: T
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Rows matching the filters")
    pages: int = Field(..., ge=0, description="ceil(total / limit)")

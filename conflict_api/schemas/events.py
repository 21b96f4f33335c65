"""Schemas for conflict events, list pagination, and aggregate statistics."""

import datetime as dt
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

from conflict_api.schemas.common import Pagination

EventType = Literal["Armed Conflict", "Civil Unrest", "Terrorism", "Border Dispute", "Other"]
EVENT_TYPES: tuple[str, ...] = get_args(EventType)


class EventCreate(BaseModel):
    """Body for POST /events (admin only)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    country: str = Field(..., min_length=2, max_length=100)
    event_type: EventType
    fatalities: int = Field(..., ge=0, le=1_000_000)
    date: dt.date = Field(..., description="ISO-8601 calendar date (YYYY-MM-DD)")
    description: str = Field(..., min_length=10, max_length=1000)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    severity: str | None = Field(default=None, max_length=50)
    source: str | None = Field(default=None, max_length=255)


class EventOut(BaseModel):
    """A stored event with its creator's username."""

    id: int
    country: str
    # Not narrowed to EventType: rows may predate the current type list
    event_type: str
    fatalities: int
    date: dt.date
    description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    severity: str | None = None
    source: str | None = None
    created_by: int | None = None
    created_by_username: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class EventListData(BaseModel):
    events: list[EventOut]
    pagination: Pagination


class EventCreatedData(BaseModel):
    event: EventOut


class OverallStats(BaseModel):
    total_events: int = 0
    total_fatalities: int = 0
    countries_affected: int = 0
    event_types: int = 0


class CountryStat(BaseModel):
    country: str
    event_count: int
    total_fatalities: int


class TypeStat(BaseModel):
    event_type: str
    event_count: int
    total_fatalities: int


class StatsData(BaseModel):
    overall: OverallStats
    by_country: list[CountryStat] = Field(description="Top 10 countries by event count")
    by_type: list[TypeStat]

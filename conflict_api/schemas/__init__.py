"""Pydantic request/response schemas."""

from conflict_api.schemas.auth import (
    CurrentUser,
    LoginData,
    LoginRequest,
    MeData,
    RefreshRequest,
    TokenPair,
    UserOut,
)
from conflict_api.schemas.common import ApiResponse, Pagination
from conflict_api.schemas.events import (
    EVENT_TYPES,
    CountryStat,
    EventCreate,
    EventCreatedData,
    EventListData,
    EventOut,
    EventType,
    OverallStats,
    StatsData,
    TypeStat,
)
from conflict_api.schemas.health import HealthResponse

__all__ = [
    "EVENT_TYPES",
    "ApiResponse",
    "CountryStat",
    "CurrentUser",
    "EventCreate",
    "EventCreatedData",
    "EventListData",
    "EventOut",
    "EventType",
    "HealthResponse",
    "LoginData",
    "LoginRequest",
    "MeData",
    "OverallStats",
    "Pagination",
    "RefreshRequest",
    "StatsData",
    "TokenPair",
    "TypeStat",
    "UserOut",
]

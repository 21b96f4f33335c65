"""Events endpoints: filtered listing, admin-only creation, and statistics."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from conflict_api.api.auth import get_current_user, require_admin
from conflict_api.core.database import get_db
from conflict_api.core.errors import ConflictError
from conflict_api.db.adapter import QueryAdapter
from conflict_api.db.errors import ConstraintViolation
from conflict_api.schemas.auth import CurrentUser
from conflict_api.schemas.common import ApiResponse, Pagination
from conflict_api.schemas.events import (
    EventCreate,
    EventCreatedData,
    EventListData,
    StatsData,
)
from conflict_api.services.event_query import DEFAULT_PAGE_SIZE, EventFilters
from conflict_api.services.events import create_event, get_stats, list_events

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ApiResponse[EventListData])
def get_events(
    db: Annotated[QueryAdapter, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    country: Annotated[str | None, Query(max_length=100)] = None,
    event_type: Annotated[str | None, Query(max_length=50)] = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> ApiResponse[EventListData]:
    """
    List events, newest first.

    - **country**, **event_type**: case-insensitive substring match
    - **start_date**, **end_date**: inclusive YYYY-MM-DD bounds
    - **page**, **limit**: values below 1 are treated as 1; limit is capped at 100
    """
    filters = EventFilters(
        country=country,
        event_type=event_type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    events, total, pages = list_events(db, filters)
    return ApiResponse[EventListData](
        data=EventListData(
            events=events,
            pagination=Pagination(
                page=filters.page, limit=filters.limit, total=total, pages=pages
            ),
        )
    )


@router.post("", response_model=ApiResponse[EventCreatedData], status_code=status.HTTP_201_CREATED)
def post_event(
    body: EventCreate,
    db: Annotated[QueryAdapter, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[EventCreatedData]:
    """Create an event (admin only). Returns the stored event."""
    try:
        event = create_event(db, body, created_by=admin.id)
    except ConstraintViolation as e:
        logger.info("Event rejected by constraint: %s", e.message)
        raise ConflictError("Event violates a data constraint") from e
    return ApiResponse[EventCreatedData](
        message="Event created successfully",
        data=EventCreatedData(event=event),
    )


@router.get("/stats", response_model=ApiResponse[StatsData])
def get_event_stats(
    db: Annotated[QueryAdapter, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[StatsData]:
    """Totals overall, top 10 countries by event count, and counts per event type."""
    return ApiResponse[StatsData](data=get_stats(db))

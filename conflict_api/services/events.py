"""Event listing, creation, and aggregate statistics."""

import logging
from typing import Any

from conflict_api.db.adapter import QueryAdapter
from conflict_api.db.dialects import Backend
from conflict_api.schemas.events import (
    CountryStat,
    EventCreate,
    EventOut,
    OverallStats,
    StatsData,
    TypeStat,
)
from conflict_api.services.event_query import (
    EventFilters,
    build_event_queries,
    total_pages,
)

logger = logging.getLogger(__name__)

TOP_COUNTRIES = 10

_INSERT_EVENT = """
    INSERT INTO events (
        country, event_type, fatalities, date, description,
        latitude, longitude, severity, source, created_by
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
"""

_SELECT_EVENT = """
    SELECT e.id, e.country, e.event_type, e.fatalities, e.date, e.description,
           e.latitude, e.longitude, e.severity, e.source, e.created_by,
           e.created_at, e.updated_at, u.username AS created_by_username
    FROM events e
    LEFT JOIN users u ON e.created_by = u.id
    WHERE e.id = $1
"""

_OVERALL_STATS = """
    SELECT COUNT(*) AS total_events,
           COALESCE(SUM(fatalities), 0) AS total_fatalities,
           COUNT(DISTINCT country) AS countries_affected,
           COUNT(DISTINCT event_type) AS event_types
    FROM events
"""

_STATS_BY_COUNTRY = """
    SELECT country,
           COUNT(*) AS event_count,
           COALESCE(SUM(fatalities), 0) AS total_fatalities
    FROM events
    GROUP BY country
    ORDER BY event_count DESC, country ASC
    LIMIT $1
"""

_STATS_BY_TYPE = """
    SELECT event_type,
           COUNT(*) AS event_count,
           COALESCE(SUM(fatalities), 0) AS total_fatalities
    FROM events
    GROUP BY event_type
    ORDER BY event_count DESC, event_type ASC
"""


def list_events(db: QueryAdapter, filters: EventFilters) -> tuple[list[EventOut], int, int]:
    """Return (events on the requested page, total matching, total pages)."""
    page_stmt, count_stmt = build_event_queries(filters)
    rows = db.execute(page_stmt.sql, page_stmt.params).rows
    total = int(db.execute(count_stmt.sql, count_stmt.params).scalar() or 0)
    events = [EventOut.model_validate(row) for row in rows]
    return events, total, total_pages(total, filters.limit)


def get_event(db: QueryAdapter, event_id: int) -> EventOut | None:
    row = db.execute(_SELECT_EVENT, [event_id]).first()
    return EventOut.model_validate(row) if row is not None else None


def create_event(db: QueryAdapter, body: EventCreate, created_by: int) -> EventOut:
    """
    Insert an event and return it as stored.

    PostgreSQL reports the new id through RETURNING; SQLite through the driver's
    last-insert id. Raises ConstraintViolation if the row is rejected.
    """
    params: list[Any] = [
        body.country,
        body.event_type,
        body.fatalities,
        body.date,
        body.description,
        body.latitude,
        body.longitude,
        body.severity,
        body.source,
        created_by,
    ]
    if db.backend is Backend.POSTGRES:
        result = db.execute(_INSERT_EVENT + " RETURNING id", params)
    else:
        result = db.execute(_INSERT_EVENT, params)
    if result.insert_id is None:
        raise RuntimeError("Insert did not report a generated event id")

    event = get_event(db, result.insert_id)
    if event is None:
        raise RuntimeError(f"Event {result.insert_id} missing immediately after insert")
    logger.info(
        "Event created: id=%s country=%s event_type=%s created_by=%s",
        event.id,
        event.country,
        event.event_type,
        created_by,
    )
    return event


def get_stats(db: QueryAdapter) -> StatsData:
    overall = db.execute(_OVERALL_STATS).first() or {}
    by_country = db.execute(_STATS_BY_COUNTRY, [TOP_COUNTRIES]).rows
    by_type = db.execute(_STATS_BY_TYPE).rows
    return StatsData(
        overall=OverallStats.model_validate(overall),
        by_country=[CountryStat.model_validate(row) for row in by_country],
        by_type=[TypeStat.model_validate(row) for row in by_type],
    )

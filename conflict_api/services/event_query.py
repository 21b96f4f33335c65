"""
Event query builder: filters, pagination, and ordering for the events list.

The page statement and the count statement are built from one shared
predicate, so the reported total always matches the filtered set.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# OFFSET binds as a signed 64-bit integer on both backends
MAX_OFFSET = 2**63 - 1

# Joined to users for the creator's username; LEFT JOIN keeps events whose creator is gone.
_PAGE_SELECT = """
    SELECT e.id, e.country, e.event_type, e.fatalities, e.date, e.description,
           e.latitude, e.longitude, e.severity, e.source, e.created_by,
           e.created_at, e.updated_at, u.username AS created_by_username
    FROM events e
    LEFT JOIN users u ON e.created_by = u.id
"""
_COUNT_SELECT = "SELECT COUNT(*) AS total FROM events e"
_ORDER_BY = "ORDER BY e.date DESC, e.created_at DESC, e.id DESC"


def coerce_pagination(page: Any, limit: Any) -> tuple[int, int]:
    """
    Coerce page and limit to safe positive integers.

    Non-numeric values fall back to the defaults; anything below 1 becomes 1;
    limit is capped at MAX_PAGE_SIZE and page is capped so the offset fits
    in MAX_OFFSET.
    """
    try:
        page_num = int(page)
    except (TypeError, ValueError):
        page_num = 1
    try:
        limit_num = int(limit)
    except (TypeError, ValueError):
        limit_num = DEFAULT_PAGE_SIZE
    limit_num = min(max(limit_num, 1), MAX_PAGE_SIZE)
    page_num = min(max(page_num, 1), MAX_OFFSET // limit_num + 1)
    return page_num, limit_num


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


@dataclass(frozen=True)
class EventFilters:
    """Per-request filter set; page and limit are coerced on construction."""

    country: str | None = None
    event_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        page, limit = coerce_pagination(self.page, self.limit)
        object.__setattr__(self, "page", page)
        object.__setattr__(self, "limit", limit)
        # Empty strings mean "no filter"
        object.__setattr__(self, "country", self.country or None)
        object.__setattr__(self, "event_type", self.event_type or None)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Statement:
    sql: str
    params: tuple[Any, ...]


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_filter_predicate(filters: EventFilters) -> tuple[str, list[Any]]:
    """
    WHERE clause and params for the filter set, numbered from $1.

    Strings match as case-insensitive substrings; dates are inclusive bounds.
    """
    clauses: list[str] = []
    params: list[Any] = []

    def _bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    if filters.country:
        clauses.append(
            f"LOWER(e.country) LIKE LOWER({_bind(_like_pattern(filters.country))}) ESCAPE '\\'"
        )
    if filters.event_type:
        clauses.append(
            f"LOWER(e.event_type) LIKE LOWER({_bind(_like_pattern(filters.event_type))}) ESCAPE '\\'"
        )
    if filters.start_date is not None:
        clauses.append(f"e.date >= {_bind(filters.start_date)}")
    if filters.end_date is not None:
        clauses.append(f"e.date <= {_bind(filters.end_date)}")

    where = "WHERE " + " AND ".join(clauses) if clauses else ""
    return where, params


def build_event_queries(filters: EventFilters) -> tuple[Statement, Statement]:
    """Return (page statement, count statement) sharing one filter predicate."""
    where, params = build_filter_predicate(filters)
    limit_ref = f"${len(params) + 1}"
    offset_ref = f"${len(params) + 2}"
    page_sql = f"{_PAGE_SELECT} {where} {_ORDER_BY} LIMIT {limit_ref} OFFSET {offset_ref}"
    count_sql = f"{_COUNT_SELECT} {where}"
    return (
        Statement(page_sql, (*params, filters.limit, filters.offset)),
        Statement(count_sql, tuple(params)),
    )

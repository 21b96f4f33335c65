"""
Schema initialization and seed data.

Runs once at startup, before the app serves traffic. Every step is idempotent:
tables and indexes use IF NOT EXISTS, accounts are insert-if-absent, and sample
events are skipped when an identical row exists. Failures propagate so the
caller can abort startup.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from conflict_api.core.security import hash_password
from conflict_api.db.adapter import QueryAdapter
from conflict_api.db.dialects import Backend
from conflict_api.services.users import create_user_if_absent, get_user_by_username

if TYPE_CHECKING:
    from conflict_api.core.config import Settings

logger = logging.getLogger(__name__)

SEED_ADMIN_USERNAME = "admin"

# (username, default password, role)
DEFAULT_ACCOUNTS = (
    (SEED_ADMIN_USERNAME, "admin123", "admin"),
    ("user", "user123", "user"),
)


@dataclass(frozen=True)
class SampleEvent:
    country: str
    event_type: str
    fatalities: int
    date: date
    description: str


SAMPLE_EVENTS = (
    SampleEvent(
        "Syria",
        "Armed Conflict",
        25,
        date(2024, 1, 15),
        "Armed clash between government forces and opposition groups in rural Damascus",
    ),
    SampleEvent(
        "Ukraine",
        "Armed Conflict",
        12,
        date(2024, 2, 20),
        "Artillery strike on civilian infrastructure in eastern Ukraine",
    ),
    SampleEvent(
        "Myanmar",
        "Civil Unrest",
        8,
        date(2024, 3, 10),
        "Violent crackdown on pro-democracy protesters in Yangon",
    ),
    SampleEvent(
        "Afghanistan",
        "Terrorism",
        45,
        date(2024, 4, 5),
        "Bomb explosion at a religious gathering in Kabul",
    ),
    SampleEvent(
        "Somalia",
        "Armed Conflict",
        18,
        date(2024, 5, 12),
        "Fighting between clan militias over territorial control",
    ),
)


def create_schema(db: QueryAdapter) -> None:
    """Create tables and indexes with the active backend's DDL."""
    for statement in db.dialect.schema_statements:
        db.execute(statement)


def seed_default_users(db: QueryAdapter, rounds: int) -> int:
    """Create the default admin and regular accounts if absent. Returns how many were created."""
    created = 0
    for username, password, role in DEFAULT_ACCOUNTS:
        if get_user_by_username(db, username) is not None:
            continue
        if create_user_if_absent(db, username, hash_password(password, rounds), role) is not None:
            created += 1
    return created


def seed_sample_events(db: QueryAdapter) -> int:
    """Insert the sample events attributed to the admin account. Returns rows inserted."""
    if db.backend is Backend.SQLITE:
        # The SQLite statement takes the creator id directly; resolve it first.
        admin = get_user_by_username(db, SEED_ADMIN_USERNAME)
        if admin is None:
            logger.warning("Admin account missing; skipping sample events")
            return 0
        creator: int | str = admin["id"]
    else:
        creator = SEED_ADMIN_USERNAME

    inserted = 0
    for sample in SAMPLE_EVENTS:
        result = db.execute(
            db.dialect.seed_event,
            [
                sample.country,
                sample.event_type,
                sample.fatalities,
                sample.date,
                sample.description,
                creator,
            ],
        )
        inserted += result.affected
    return inserted


def initialize_database(db: QueryAdapter, settings: "Settings") -> None:
    """Create schema, then seed accounts and (optionally) sample events."""
    create_schema(db)
    users_created = seed_default_users(db, settings.BCRYPT_ROUNDS)
    events_created = 0
    if settings.SEED_SAMPLE_DATA:
        events_created = seed_sample_events(db)
    logger.info(
        "Database initialized: backend=%s users_created=%s events_created=%s",
        db.backend.value,
        users_created,
        events_created,
    )
    if users_created and settings.APP_ENV == "dev":
        logger.info(
            "Default accounts available: %s",
            ", ".join(username for username, _, _ in DEFAULT_ACCOUNTS),
        )

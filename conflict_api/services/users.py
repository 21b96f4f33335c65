"""User lookups and writes against the users table."""

import logging
from typing import Any

from conflict_api.db.adapter import QueryAdapter

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, password_hash, role, created_at, updated_at"


def get_user_by_username(db: QueryAdapter, username: str) -> dict[str, Any] | None:
    return db.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE username = $1",
        [username],
    ).first()


def get_user_by_id(db: QueryAdapter, user_id: int) -> dict[str, Any] | None:
    return db.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
        [user_id],
    ).first()


def create_user_if_absent(
    db: QueryAdapter, username: str, password_hash: str, role: str
) -> int | None:
    """
    Insert a user unless the username is taken. Never overwrites.

    Returns the new id, or None when a user with that username already existed.
    """
    result = db.execute(db.dialect.insert_user_if_absent, [username, password_hash, role])
    if result.affected == 0:
        return None
    logger.info("Created user username=%s role=%s", username, role)
    return result.insert_id


def update_password(db: QueryAdapter, user_id: int, password_hash: str) -> bool:
    """Replace a user's password hash and bump updated_at. Returns False if no such user."""
    result = db.execute(db.dialect.update_password, [password_hash, user_id])
    return result.affected > 0

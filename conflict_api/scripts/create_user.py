"""
Create a user, or rotate an existing user's password. Run from project root:
  python -m conflict_api.scripts.create_user USERNAME PASSWORD [role] [--update-password]
Example:
  python -m conflict_api.scripts.create_user analyst your-secure-password admin
"""
import argparse
import logging
import re
import sys

from dotenv import load_dotenv

from conflict_api.core.config import get_settings
from conflict_api.core.logging import configure_logging
from conflict_api.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    ROLES,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
    hash_password,
)
from conflict_api.db.adapter import create_adapter
from conflict_api.db.errors import QueryError
from conflict_api.db.schema import create_schema
from conflict_api.services.users import (
    create_user_if_absent,
    get_user_by_username,
    update_password,
)

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a user or rotate a password.")
    parser.add_argument(
        "username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars, [A-Za-z0-9_])"
    )
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLES))
    parser.add_argument(
        "--update-password",
        action="store_true",
        help="Replace the password of an existing user instead of creating one",
    )
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN) or not re.match(
        USERNAME_PATTERN, username
    ):
        print("Invalid username.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    settings = get_settings()
    configure_logging(settings)
    db = create_adapter(settings)
    try:
        create_schema(db)
        existing = get_user_by_username(db, username)
        password_hash = hash_password(args.password, settings.BCRYPT_ROUNDS)
        if args.update_password:
            if existing is None:
                print(f"User '{username}' does not exist.", file=sys.stderr)
                return 1
            update_password(db, existing["id"], password_hash)
            print(f"Updated password for '{username}'.")
            return 0
        if existing is not None:
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        if create_user_if_absent(db, username, password_hash, args.role) is None:
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        print(f"Created user '{username}' with role '{args.role}'.")
        return 0
    except QueryError as e:
        logger.error("Database error: %s", e.message)
        return 1
    finally:
        db.dispose()


if __name__ == "__main__":
    load_dotenv()
    sys.exit(main())

"""Request-scoped access to the query adapter created at startup."""

from fastapi import Request

from conflict_api.db.adapter import QueryAdapter


def get_db(request: Request) -> QueryAdapter:
    """Dependency that returns the process-wide adapter held on app.state."""
    return request.app.state.db


def check_db_connected(db: QueryAdapter) -> bool:
    """Run a trivial query to verify the database is reachable."""
    return db.ping()

"""API routes."""

from fastapi import APIRouter

from conflict_api.api import auth, events

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(events.router, prefix="/events", tags=["events"])

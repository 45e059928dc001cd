"""Main API router that includes all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from hackreg.server.api import attendees, checkin, health, mentors

router = APIRouter()

# Include all API routers
router.include_router(health.router)
router.include_router(mentors.router)
router.include_router(attendees.router)
router.include_router(checkin.router)

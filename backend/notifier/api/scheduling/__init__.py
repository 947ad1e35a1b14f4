"""Reminder scheduling API."""
from fastapi import APIRouter

from notifier.api.scheduling import routes_schedule

router = APIRouter()

router.include_router(routes_schedule.router, prefix="/schedule", tags=["scheduling"])

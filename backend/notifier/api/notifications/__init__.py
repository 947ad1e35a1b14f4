"""Notifications API."""
from fastapi import APIRouter

from notifier.api.notifications import routes_process

router = APIRouter()

router.include_router(routes_process.router, tags=["notifications"])

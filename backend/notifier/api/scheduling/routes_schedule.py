"""Scheduler endpoints, invoked by cron."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from notifier.api.deps import Clock, get_clock, get_db, verify_webhook_secret
from notifier.services.scheduling_service import schedule_daily_reminders, schedule_inactive_reminders
from notifier.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_webhook_secret)])


@router.post("/daily")
async def schedule_daily(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Enqueue daily reminders due in each user's local hour."""
    try:
        result = await schedule_daily_reminders(db, now=clock())
    except Exception as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to schedule daily notifications", "details": str(e)},
        )
    if result.notifications_scheduled == 0:
        return {"message": "No notifications to schedule for this run."}
    return {
        "success": True,
        "message": "Daily notifications scheduled",
        "usersProcessed": result.users_processed,
        "notificationsScheduled": result.notifications_scheduled,
    }


@router.post("/inactive")
async def remind_inactive(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Enqueue inactive reminders for each configured threshold."""
    try:
        scheduled = await schedule_inactive_reminders(db, settings.inactive_reminder_days, now=clock())
    except Exception as e:
        logger.error("Error reminding inactive users: %s", e, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to remind inactive users", "details": str(e)},
        )
    return {"success": True, "scheduled": scheduled}

"""
Reminder schedulers. Both only enqueue pending notifications; delivery happens
when the database webhook calls back into the dispatch pipeline.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notifier.domain.notifications.schedules import (
    DAILY_SCHEDULES,
    DailySchedule,
    daily_reminder_events,
    inactive_reminder_event,
)
from notifier.infra.db.repositories.pending_notification_repo import PendingNotificationRepository
from notifier.infra.db.repositories.schedule_log_repo import ScheduleLogRepository
from notifier.infra.db.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class DailyScheduleResult:
    users_processed: int
    notifications_scheduled: int


async def schedule_daily_reminders(
    session: AsyncSession,
    now: Optional[datetime] = None,
    schedules: tuple[DailySchedule, ...] = DAILY_SCHEDULES,
) -> DailyScheduleResult:
    """
    Enqueue daily reminders for every user whose local hour matches a schedule.

    Successful runs that schedule something, and every failed run, are recorded in
    notification_schedule_logs. Failures are re-raised after the log row.
    """
    now = now or datetime.now(timezone.utc)
    try:
        users = await UserRepository(session).list_with_push_tokens()
        rows = [row for user_id, tz_name in users for row in daily_reminder_events(user_id, tz_name, now, schedules)]
        if not rows:
            logger.info("Daily scheduler: nothing due at %s for %d users", now.isoformat(), len(users))
            return DailyScheduleResult(users_processed=len(users), notifications_scheduled=0)

        await PendingNotificationRepository(session).create_many(rows)
        logger.info("Daily scheduler: %d notifications for %d users", len(rows), len(users))
    except Exception as e:
        logger.error("Daily scheduler failed: %s", e, exc_info=True)
        await session.rollback()
        try:
            await ScheduleLogRepository(session).log_run(
                success=False,
                error_details={"message": str(e), "error_type": type(e).__name__},
            )
        except Exception as log_error:
            logger.error("Could not record failed scheduler run: %s", log_error)
        raise

    try:
        await ScheduleLogRepository(session).log_run(
            success=True,
            users_processed=len(users),
            metrics={
                "notificationsScheduled": len(rows),
                "currentTimeUtc": now.astimezone(timezone.utc).isoformat(),
            },
        )
    except Exception as e:
        # run log is best effort once events are enqueued
        logger.error("Error logging scheduling operation: %s", e)
        await session.rollback()
    return DailyScheduleResult(users_processed=len(users), notifications_scheduled=len(rows))


async def schedule_inactive_reminders(
    session: AsyncSession,
    thresholds: Iterable[int],
    now: Optional[datetime] = None,
) -> int:
    """
    Enqueue an inactive_reminder for users last active in the 24 hours ending
    `days` ago, for each threshold. Returns the number of events created.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    users = UserRepository(session)
    pending = PendingNotificationRepository(session)
    scheduled = 0
    for days in thresholds:
        end = now - timedelta(days=days)
        start = end - timedelta(days=1)
        user_ids = await users.list_last_active_between(start, end)
        if not user_ids:
            logger.info("No users last active %d days ago", days)
            continue
        await pending.create_many([inactive_reminder_event(user_id, days) for user_id in user_ids])
        scheduled += len(user_ids)
        logger.info("Scheduled inactive reminders for %d users last active %d days ago", len(user_ids), days)
    return scheduled

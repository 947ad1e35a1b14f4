"""Recurring reminder schedules and the pending events they produce."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from notifier.domain.notifications.models import NotificationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySchedule:
    hour: int
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


DAILY_SCHEDULES: tuple[DailySchedule, ...] = (
    DailySchedule(
        hour=9,
        title="🌅 Morning Updates",
        message="Start your day with fresh car listings!",
        data={"screen": "/(home)/(user)", "timeOfDay": "morning"},
    ),
    DailySchedule(
        hour=14,
        title="🚗 Afternoon Picks",
        message="Take a break and browse new cars!",
        data={"screen": "/(home)/(user)", "timeOfDay": "afternoon"},
    ),
    DailySchedule(
        hour=19,
        title="🌆 Evening Selection",
        message="End your day by finding your dream car!",
        data={"screen": "/(home)/(user)", "timeOfDay": "evening"},
    ),
)


def user_local_hour(now_utc: datetime, tz_name: Optional[str]) -> int:
    """Current hour in the user's timezone. Unknown or empty zones count as UTC."""
    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    if not tz_name:
        return now_utc.astimezone(timezone.utc).hour
    try:
        return now_utc.astimezone(ZoneInfo(tz_name)).hour
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; using UTC", tz_name)
        return now_utc.astimezone(timezone.utc).hour


def daily_reminder_events(
    user_id: str,
    tz_name: Optional[str],
    now_utc: datetime,
    schedules: tuple[DailySchedule, ...] = DAILY_SCHEDULES,
) -> list[dict[str, Any]]:
    """Pending-event rows for every schedule whose hour is the user's current local hour."""
    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    local_hour = user_local_hour(now_utc, tz_name)
    scheduled_for = now_utc.astimezone(timezone.utc).isoformat()
    return [
        {
            "user_id": user_id,
            "type": NotificationType.DAILY_REMINDER.value,
            "data": {
                "title": s.title,
                "message": s.message,
                **s.data,
                "type": NotificationType.DAILY_REMINDER.value,
                "hour": s.hour,
                "metadata": {"scheduledFor": scheduled_for, "userTimezone": tz_name},
            },
        }
        for s in schedules
        if s.hour == local_hour
    ]


def inactive_reminder_event(user_id: str, days: int) -> dict[str, Any]:
    """Pending-event row nudging a user inactive for the given number of days."""
    return {
        "user_id": user_id,
        "type": NotificationType.INACTIVE_REMINDER.value,
        "data": {
            "title": "👋 We Miss You!",
            "message": f"It's been {days} days! Come back and find your dream car.",
            "screen": "/(home)",
            "type": NotificationType.INACTIVE_REMINDER.value,
            "inactiveDays": days,
        },
    }

"""Duplicate suppression for schedule-driven notification types."""
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from notifier.domain.notifications.models import PendingEvent
from notifier.domain.notifications.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def resolve_hour(event: PendingEvent, now: datetime) -> int:
    """Hour the event was scheduled for: data.hour, then metadata.scheduledFor, then now."""
    hour = event.data.get("hour")
    if isinstance(hour, int) and not isinstance(hour, bool) and 0 <= hour <= 23:
        return hour
    metadata = event.data.get("metadata") or {}
    scheduled_for = metadata.get("scheduledFor") if isinstance(metadata, dict) else None
    if isinstance(scheduled_for, str):
        try:
            return datetime.fromisoformat(scheduled_for.replace("Z", "+00:00")).hour
        except ValueError:
            logger.debug("Unparseable scheduledFor %r on event %s", scheduled_for, event.id)
    return now.hour


class DuplicateSuppressor:
    """Detects repeats of recurring notifications inside a trailing time window."""

    def __init__(
        self,
        notification_repo: NotificationRepository,
        window_minutes: int,
        rate_limited_types: Iterable[str],
    ):
        self.notification_repo = notification_repo
        self.window = timedelta(minutes=window_minutes)
        self.rate_limited_types = frozenset(rate_limited_types)

    def applies_to(self, event: PendingEvent) -> bool:
        return event.type in self.rate_limited_types

    async def is_duplicate(self, event: PendingEvent, now: datetime, hour: Optional[int] = None) -> bool:
        """True if the same (user, type) was notified within the window. Non-recurring types always pass."""
        if not self.applies_to(event):
            return False
        since = now - self.window
        found = await self.notification_repo.exists_since(event.user_id, event.type, since)
        if found:
            logger.info(
                "Duplicate %s for user %s (hour %s) within %s; skipping event %s",
                event.type,
                event.user_id,
                hour if hour is not None else resolve_hour(event, now),
                self.window,
                event.id,
            )
        return found

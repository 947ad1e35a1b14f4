"""Push templates per notification type."""
from dataclasses import dataclass
from typing import Optional

from notifier.domain.notifications.models import NotificationType


@dataclass(frozen=True)
class NotificationTemplate:
    """Rendering defaults for one notification type. Event data title/message win when present."""

    title: str
    body: str
    sound: Optional[str] = "default"
    channel_id: str = "default"
    priority: str = "high"


TEMPLATES: dict[NotificationType, NotificationTemplate] = {
    NotificationType.DAILY_REMINDER: NotificationTemplate(
        title="🚗 Daily Car Updates",
        body="Fresh car listings are waiting for you!",
        channel_id="reminders",
        priority="normal",
    ),
    NotificationType.PRICE_DROP: NotificationTemplate(
        title="💰 Price Drop Alert!",
        body="A car in your favorites has changed price!",
        channel_id="price-alerts",
    ),
    NotificationType.CAR_SOLD: NotificationTemplate(
        title="💫 Car Sold Update",
        body="A car you liked has been sold!",
    ),
    NotificationType.VIEW_MILESTONE: NotificationTemplate(
        title="🎯 Popular Car Alert!",
        body="A car in your favorites is getting a lot of attention!",
    ),
    NotificationType.INACTIVE_REMINDER: NotificationTemplate(
        title="👋 We Miss You!",
        body="Come back and find your dream car.",
        channel_id="reminders",
        priority="normal",
    ),
    NotificationType.GENERIC: NotificationTemplate(
        title="Notification",
        body="You have a new notification.",
    ),
}


def resolve_template(notification_type: Optional[NotificationType]) -> Optional[NotificationTemplate]:
    """Template for a known type; None when the type has no template."""
    if notification_type is None:
        return None
    return TEMPLATES.get(notification_type)

"""Database models."""
from notifier.infra.db.models.user import UserModel
from notifier.infra.db.models.push_token import PushTokenModel
from notifier.infra.db.models.pending_notification import PendingNotificationModel
from notifier.infra.db.models.notification import NotificationModel
from notifier.infra.db.models.notification_error import NotificationErrorModel
from notifier.infra.db.models.notification_metric import NotificationMetricModel
from notifier.infra.db.models.schedule_log import NotificationScheduleLogModel

__all__ = [
    "UserModel",
    "PushTokenModel",
    "PendingNotificationModel",
    "NotificationModel",
    "NotificationErrorModel",
    "NotificationMetricModel",
    "NotificationScheduleLogModel",
]

"""Notification metric repository (append-only)."""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notifier.domain.common.types import generate_id, utcnow
from notifier.infra.db.models.notification_metric import NotificationMetricModel


class NotificationMetricRepository:
    """Delivery telemetry."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(self, metric: dict[str, Any]) -> None:
        """Insert one metric row. metric keys mirror NotificationMetricModel columns."""
        self.session.add(
            NotificationMetricModel(
                id=generate_id(),
                notification_id=metric["notification_id"],
                user_id=metric["user_id"],
                type=metric["type"],
                status=metric["status"],
                platform=metric.get("platform"),
                devices=metric.get("devices", 0),
                delivered_at=metric.get("delivered_at") or utcnow(),
                scheduled_hour=metric.get("scheduled_hour"),
                scheduled_for=metric.get("scheduled_for"),
                user_timezone=metric.get("user_timezone"),
                extra=metric.get("extra"),
            )
        )
        await self.session.commit()

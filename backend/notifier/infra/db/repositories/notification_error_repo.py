"""Notification error repository (append-only)."""
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notifier.domain.common.types import generate_id, utcnow
from notifier.infra.db.models.notification_error import NotificationErrorModel


class NotificationErrorRepository:
    """Audit log of ticket, receipt and pipeline errors."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        user_id: Optional[str],
        error: dict[str, Any],
        notification_data: Optional[dict[str, Any]],
    ) -> None:
        self.session.add(
            NotificationErrorModel(
                id=generate_id(),
                user_id=user_id,
                error=error,
                notification_data=notification_data,
                created_at=utcnow(),
            )
        )
        await self.session.commit()

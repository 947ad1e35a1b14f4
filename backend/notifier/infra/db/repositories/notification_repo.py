"""Notification repository."""
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from notifier.domain.common.types import utcnow
from notifier.infra.db.models.notification import NotificationModel


class NotificationRepository:
    """Notification repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        notification_id: str,
        user_id: str,
        type: str,
        title: Optional[str],
        message: Optional[str],
        data: dict[str, Any],
    ) -> NotificationModel:
        """Insert one notification, unread."""
        model = NotificationModel(
            id=notification_id,
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data,
            is_read=False,
            created_at=utcnow(),
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def exists_since(self, user_id: str, type: str, since: datetime) -> bool:
        """True if the user has a notification of this type created at or after since."""
        if since.tzinfo is not None:
            since = since.astimezone(timezone.utc).replace(tzinfo=None)
        result = await self.session.execute(
            select(
                exists().where(
                    NotificationModel.user_id == user_id,
                    NotificationModel.type == type,
                    NotificationModel.created_at >= since,
                )
            )
        )
        return bool(result.scalar())

"""Pending notification repository."""
from typing import Any, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from notifier.domain.common.types import generate_id, utcnow
from notifier.infra.db.models.pending_notification import PendingNotificationModel


class PendingNotificationRepository:
    """Inbound notification events."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def mark_processed(self, event_id: str) -> None:
        """Flip processed to true. Never reverted."""
        await self.session.execute(
            update(PendingNotificationModel)
            .where(PendingNotificationModel.id == event_id)
            .values(processed=True)
        )
        await self.session.commit()

    async def create_many(self, rows: Sequence[dict[str, Any]]) -> list[PendingNotificationModel]:
        """Insert unprocessed events. Each row needs user_id, type and data."""
        now = utcnow()
        models = [
            PendingNotificationModel(
                id=generate_id(),
                user_id=row["user_id"],
                type=row["type"],
                data=row.get("data") or {},
                processed=False,
                created_at=now,
            )
            for row in rows
        ]
        self.session.add_all(models)
        await self.session.commit()
        return models

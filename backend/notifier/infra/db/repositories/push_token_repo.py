"""Push token repository."""
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from notifier.infra.db.models.push_token import PushTokenModel


class PushTokenRepository:
    """Push destinations keyed by (user_id, token)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_destinations(self, user_id: str) -> List[tuple[str, str | None]]:
        """(token, platform) pairs registered for a user, oldest first."""
        result = await self.session.execute(
            select(PushTokenModel.token, PushTokenModel.platform)
            .where(PushTokenModel.user_id == user_id)
            .order_by(PushTokenModel.created_at)
        )
        return [tuple(row) for row in result.all()]

    async def delete_token(self, user_id: str, token: str) -> int:
        """Delete one destination if present. Idempotent; returns rows deleted."""
        result = await self.session.execute(
            delete(PushTokenModel).where(
                PushTokenModel.user_id == user_id,
                PushTokenModel.token == token,
            )
        )
        await self.session.commit()
        return result.rowcount or 0

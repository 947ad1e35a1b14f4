"""User lookups for reminder scheduling."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notifier.infra.db.models.push_token import PushTokenModel
from notifier.infra.db.models.user import UserModel


class UserRepository:
    """Read-only user queries; only users with a push destination are returned."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_with_push_tokens(self) -> List[tuple[str, Optional[str]]]:
        """(user_id, timezone) for every user with at least one registered token."""
        result = await self.session.execute(
            select(UserModel.id, UserModel.timezone)
            .where(UserModel.id.in_(select(PushTokenModel.user_id)))
            .order_by(UserModel.id)
        )
        return [tuple(row) for row in result.all()]

    async def list_last_active_between(self, start: datetime, end: datetime) -> List[str]:
        """Ids of users with a push token whose last_active lies in (start, end]."""
        result = await self.session.execute(
            select(UserModel.id)
            .where(
                UserModel.id.in_(select(PushTokenModel.user_id)),
                UserModel.last_active > start,
                UserModel.last_active <= end,
            )
            .order_by(UserModel.id)
        )
        return list(result.scalars().all())

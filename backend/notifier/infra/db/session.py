"""Request-scoped database sessions."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notifier.infra.db import base


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that outlives a request (deferred receipt checks)."""
    if base.AsyncSessionLocal is None:
        raise RuntimeError("Database is not configured")
    return base.AsyncSessionLocal


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as session:
        yield session

"""Pytest configuration and shared fixtures: in-memory database, fake push gateway, app client."""
from typing import Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notifier.domain.common.types import generate_id, utcnow
from notifier.domain.notifications.events import NotificationEventBus
from notifier.domain.notifications.models import PushMessage, PushReceipt, PushTicket
from notifier.infra.db.base import Base, build_sessionmaker
from notifier.infra.db.models import (
    NotificationModel,
    PendingNotificationModel,
    PushTokenModel,
    UserModel,
)
from notifier.infra.push.expo_client import PushGatewayError, is_expo_push_token
from notifier.settings import get_config_store


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a real DB, Redis or push gateway (deselect with '-m \"not integration\"')"
    )


class FakePushGateway:
    """
    Push gateway double. Records every chunk sent and receipt query.

    Tickets default to ok with id "ticket-<token>"; script per-token tickets in
    `tickets`, receipts by id in `receipts`, and send-call indexes that should
    raise in `fail_sends`.
    """

    def __init__(self, send_chunk_size: int = 100, receipt_chunk_size: int = 300):
        self.send_chunk_size = send_chunk_size
        self.receipt_chunk_size = receipt_chunk_size
        self.sent_chunks: list[list[PushMessage]] = []
        self.receipt_requests: list[list[str]] = []
        self.tickets: dict[str, dict[str, Any]] = {}
        self.receipts: dict[str, dict[str, Any]] = {}
        self.fail_sends: set[int] = set()
        self.fail_receipt_requests: set[int] = set()

    @property
    def sent_messages(self) -> list[PushMessage]:
        return [m for chunk in self.sent_chunks for m in chunk]

    def is_valid_token(self, token: str) -> bool:
        return is_expo_push_token(token)

    def chunk_messages(self, messages):
        n = self.send_chunk_size
        return [list(messages[i:i + n]) for i in range(0, len(messages), n)]

    def chunk_receipt_ids(self, receipt_ids):
        n = self.receipt_chunk_size
        return [list(receipt_ids[i:i + n]) for i in range(0, len(receipt_ids), n)]

    async def send_chunk(self, chunk):
        index = len(self.sent_chunks)
        self.sent_chunks.append(list(chunk))
        if index in self.fail_sends:
            raise PushGatewayError("Push gateway returned HTTP 503", status_code=503)
        return [
            PushTicket.model_validate(self.tickets.get(m.to, {"status": "ok", "id": f"ticket-{m.to}"}))
            for m in chunk
        ]

    async def get_receipts(self, receipt_ids):
        index = len(self.receipt_requests)
        self.receipt_requests.append(list(receipt_ids))
        if index in self.fail_receipt_requests:
            raise PushGatewayError("Push gateway request failed: timeout")
        return {
            rid: PushReceipt.model_validate(self.receipts[rid])
            for rid in receipt_ids
            if rid in self.receipts
        }


class RecordingTaskRunner:
    """Deferred runner double: records scheduled work; tests run it explicitly."""

    def __init__(self):
        self.scheduled: list[tuple[Any, float, str]] = []

    def schedule(self, factory, delay: float, name: str) -> None:
        self.scheduled.append((factory, delay, name))

    async def run_all(self) -> None:
        pending, self.scheduled = self.scheduled, []
        for factory, _, _ in pending:
            await factory()


class DBHelper:
    """Seeds rows and reads them back, each call on a fresh session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def add(self, *models) -> None:
        async with self.session_factory() as session:
            session.add_all(models)
            await session.commit()

    async def add_user(self, user_id: Optional[str] = None, timezone: Optional[str] = None, last_active=None) -> str:
        user_id = user_id or generate_id()
        await self.add(UserModel(id=user_id, timezone=timezone, last_active=last_active))
        return user_id

    async def add_tokens(self, user_id: str, *tokens: str, platform: Optional[str] = "ios") -> None:
        await self.add(
            *[
                PushTokenModel(id=generate_id(), user_id=user_id, token=t, platform=platform, created_at=utcnow())
                for t in tokens
            ]
        )

    async def add_pending(
        self,
        user_id: str,
        type: str,
        data: Optional[dict[str, Any]] = None,
        processed: bool = False,
    ) -> dict[str, Any]:
        """Insert a pending row and return it as the webhook record."""
        event_id = generate_id()
        await self.add(
            PendingNotificationModel(
                id=event_id,
                user_id=user_id,
                type=type,
                data=data or {},
                processed=processed,
                created_at=utcnow(),
            )
        )
        return {"id": event_id, "user_id": user_id, "type": type, "data": data or {}, "processed": processed}

    async def add_notification(self, user_id: str, type: str, created_at=None) -> str:
        notification_id = generate_id()
        await self.add(
            NotificationModel(
                id=notification_id,
                user_id=user_id,
                type=type,
                title="t",
                message="m",
                data={},
                created_at=created_at or utcnow(),
            )
        )
        return notification_id

    async def tokens(self, user_id: str) -> list[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PushTokenModel.token).where(PushTokenModel.user_id == user_id).order_by(PushTokenModel.token)
            )
            return list(result.scalars().all())

    async def count(self, model) -> int:
        async with self.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    async def all(self, model) -> list:
        async with self.session_factory() as session:
            result = await session.execute(select(model))
            return list(result.scalars().all())

    async def get(self, model, id: str):
        async with self.session_factory() as session:
            return await session.get(model, id)


@pytest.fixture
async def engine():
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def db(session_factory) -> DBHelper:
    return DBHelper(session_factory)


@pytest.fixture
def gateway() -> FakePushGateway:
    return FakePushGateway()


@pytest.fixture
def task_runner() -> RecordingTaskRunner:
    return RecordingTaskRunner()


@pytest.fixture
def event_bus() -> NotificationEventBus:
    return NotificationEventBus()


@pytest.fixture
def config_overrides():
    """Apply settings overrides for one test; cleared afterwards."""
    store = get_config_store()
    yield store.update
    store.clear_overrides()


@pytest.fixture
async def client(session_factory, gateway, task_runner, event_bus):
    """HTTP client against the app with database and collaborators replaced."""
    from notifier.api.deps import (
        get_db,
        get_event_bus,
        get_push_gateway,
        get_session_factory,
        get_task_runner,
    )
    from notifier.main import app

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_push_gateway] = lambda: gateway
    app.dependency_overrides[get_task_runner] = lambda: task_runner
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

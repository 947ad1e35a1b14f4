"""API dependencies."""
import hmac
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notifier.domain.common.errors import AuthorizationError
from notifier.domain.notifications.events import NotificationEventBus
from notifier.domain.notifications.repositories import PushGateway
from notifier.infra.db.session import get_db, get_sessionmaker
from notifier.infra.jobs.deferred import DeferredTaskScheduler
from notifier.services.dispatch_service import NotificationDispatcher
from notifier.settings import settings

Clock = Callable[[], datetime]


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Factory for sessions that outlive the request (receipt checks, failure logging)."""
    return get_sessionmaker()


def get_push_gateway(request: Request) -> PushGateway:
    return request.app.state.push_gateway


def get_task_runner(request: Request) -> DeferredTaskScheduler:
    return request.app.state.task_runner


def get_event_bus(request: Request) -> NotificationEventBus:
    return request.app.state.event_bus


def get_clock() -> Clock:
    return lambda: datetime.now(timezone.utc)


async def verify_webhook_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Require "Bearer <webhook_secret>" when a secret is configured."""
    secret = settings.webhook_secret
    if not secret:
        return
    expected = f"Bearer {secret}"
    if not authorization or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise AuthorizationError()


def get_dispatcher(
    db: AsyncSession = Depends(get_db),
    gateway: PushGateway = Depends(get_push_gateway),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    task_runner: DeferredTaskScheduler = Depends(get_task_runner),
    event_bus: NotificationEventBus = Depends(get_event_bus),
) -> NotificationDispatcher:
    return NotificationDispatcher(
        session=db,
        gateway=gateway,
        session_factory=session_factory,
        task_runner=task_runner,
        event_bus=event_bus,
    )

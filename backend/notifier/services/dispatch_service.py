"""
Notification dispatch: turns one pending event into push messages, an inbox row,
and a deferred receipt check.

Pipeline, in order:
- skip events already processed
- skip recurring types already sent inside the duplicate window
- resolve the user's push tokens
- build one message per valid token (malformed tokens are removed)
- send in gateway-sized chunks; a failing chunk is logged and the rest still go out
- log ticket errors and remove tokens the gateway reports as unregistered
- persist the notification, then mark the event processed
- publish notification.created, record metrics, schedule receipt reconciliation
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notifier.domain.common.types import generate_id
from notifier.domain.notifications.builder import MessageBuilder
from notifier.domain.notifications.duplicates import DuplicateSuppressor, resolve_hour
from notifier.domain.notifications.events import NOTIFICATION_CREATED, NotificationEventBus
from notifier.domain.notifications.models import (
    DispatchResult,
    DispatchStatus,
    NotificationRecord,
    PendingEvent,
    PushMessage,
    SentTicket,
)
from notifier.domain.notifications.repositories import PushGateway
from notifier.infra.db.repositories.notification_error_repo import NotificationErrorRepository
from notifier.infra.db.repositories.notification_repo import NotificationRepository
from notifier.infra.db.repositories.pending_notification_repo import PendingNotificationRepository
from notifier.infra.db.repositories.push_token_repo import PushTokenRepository
from notifier.infra.jobs.deferred import DeferredTaskScheduler
from notifier.infra.push.expo_client import PushGatewayError
from notifier.services.metrics_service import MetricsRecorder
from notifier.services.receipt_service import ReceiptReconciler
from notifier.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass
class DispatchConfig:
    receipt_check_delay_seconds: float = 10.0
    duplicate_window_minutes: int = 60
    rate_limited_types: list[str] = field(default_factory=lambda: ["daily_reminder"])

    @classmethod
    def from_settings(cls) -> "DispatchConfig":
        s = get_settings()
        return cls(
            receipt_check_delay_seconds=s.receipt_check_delay_seconds,
            duplicate_window_minutes=s.duplicate_window_minutes,
            rate_limited_types=list(s.rate_limited_types),
        )


class NotificationDispatcher:
    """Runs the dispatch pipeline for one event on a request-scoped session."""

    def __init__(
        self,
        session: AsyncSession,
        gateway: PushGateway,
        session_factory: async_sessionmaker[AsyncSession],
        task_runner: DeferredTaskScheduler,
        event_bus: Optional[NotificationEventBus] = None,
        config: Optional[DispatchConfig] = None,
    ):
        self.session = session
        self.gateway = gateway
        self.task_runner = task_runner
        self.event_bus = event_bus
        self.config = config or DispatchConfig.from_settings()
        self.tokens = PushTokenRepository(session)
        self.notifications = NotificationRepository(session)
        self.pending = PendingNotificationRepository(session)
        self.errors = NotificationErrorRepository(session)
        self.metrics = MetricsRecorder(session)
        self.duplicates = DuplicateSuppressor(
            self.notifications,
            self.config.duplicate_window_minutes,
            self.config.rate_limited_types,
        )
        self.builder = MessageBuilder(gateway.is_valid_token)
        self.reconciler = ReceiptReconciler(gateway, session_factory)

    async def process(self, event: PendingEvent, now: Optional[datetime] = None) -> DispatchResult:
        """
        Process one pending event.

        Persistence and the processed-flag update are fatal on failure: the
        exception propagates and the event stays unprocessed for redelivery.
        """
        if event.processed:
            logger.info("Event %s already processed", event.id)
            return DispatchResult(status=DispatchStatus.ALREADY_PROCESSED)

        now = now or datetime.now(timezone.utc)
        hour = resolve_hour(event, now)
        if await self.duplicates.is_duplicate(event, now, hour):
            return DispatchResult(status=DispatchStatus.DUPLICATE)

        destinations = await self.tokens.list_destinations(event.user_id)
        if not destinations:
            logger.info("No push tokens for user %s (event %s)", event.user_id, event.id)
            return DispatchResult(status=DispatchStatus.NO_TOKENS)

        notification_id = generate_id()
        platforms = dict(destinations)
        built = self.builder.build(event, platforms, notification_id)
        for token in built.invalid_tokens:
            await self.tokens.delete_token(event.user_id, token)
        if not built.messages:
            logger.info(
                "No valid push messages for user %s (event %s, %d invalid, %d skipped)",
                event.user_id,
                event.id,
                len(built.invalid_tokens),
                len(built.skipped_tokens),
            )
            return DispatchResult(status=DispatchStatus.NO_VALID_MESSAGES)

        sent = await self._send(event, built.messages)
        removed = await self._process_tickets(event, sent)
        tickets = [s.ticket.model_dump(exclude_none=True) for s in sent]

        model = await self.notifications.create(
            notification_id=notification_id,
            user_id=event.user_id,
            type=event.type,
            title=event.title,
            message=event.message,
            data={**event.data, "notificationId": notification_id, "tickets": tickets},
        )
        await self.pending.mark_processed(event.id)
        logger.info(
            "Notification %s stored for user %s (%d messages, %d tickets)",
            notification_id,
            event.user_id,
            len(built.messages),
            len(tickets),
        )

        if self.event_bus is not None:
            record = NotificationRecord.model_validate(model, from_attributes=True)
            await self.event_bus.publish(NOTIFICATION_CREATED, record.model_dump(mode="json"))

        self._schedule_receipt_check(event, notification_id, sent, removed)
        await self.metrics.record(
            event,
            notification_id,
            sent,
            len(built.messages),
            platforms,
            scheduled_hour=hour if self.duplicates.applies_to(event) else None,
        )
        return DispatchResult(
            status=DispatchStatus.SENT,
            notification_id=notification_id,
            tickets=tickets,
            messages_built=len(built.messages),
        )

    async def _send(self, event: PendingEvent, messages: list[PushMessage]) -> list[SentTicket]:
        """Send every chunk; failed chunks are logged and yield no tickets."""
        sent: list[SentTicket] = []
        for chunk in self.gateway.chunk_messages(messages):
            try:
                tickets = await self.gateway.send_chunk(chunk)
            except Exception as e:
                logger.error(
                    "Push chunk of %d messages failed for user %s: %s",
                    len(chunk),
                    event.user_id,
                    e,
                )
                error: dict[str, Any] = {
                    "source": "chunk",
                    "message": str(e),
                    "tokens": [m.to for m in chunk],
                }
                if isinstance(e, PushGatewayError):
                    error.update(e.to_dict())
                await self.errors.log(event.user_id, error, event.model_dump())
                continue
            sent.extend(SentTicket(token=m.to, ticket=t) for m, t in zip(chunk, tickets))
        return sent

    async def _process_tickets(self, event: PendingEvent, sent: Iterable[SentTicket]) -> set[str]:
        """Log error tickets; remove tokens reported unregistered. Returns removed tokens."""
        removed: set[str] = set()
        for s in sent:
            if not s.ticket.is_error:
                continue
            logger.warning(
                "Push ticket error %s for user %s token %s...: %s",
                s.ticket.error_code,
                event.user_id,
                s.token[:20],
                s.ticket.message,
            )
            await self.errors.log(
                event.user_id,
                {"source": "ticket", "token": s.token, "ticket": s.ticket.model_dump(exclude_none=True)},
                event.model_dump(),
            )
            if s.ticket.is_permanent_token_error and s.token not in removed:
                await self.tokens.delete_token(event.user_id, s.token)
                removed.add(s.token)
                logger.info("Removed unregistered push token for user %s: %s...", event.user_id, s.token[:20])
        return removed

    def _schedule_receipt_check(
        self,
        event: PendingEvent,
        notification_id: str,
        sent: Iterable[SentTicket],
        removed: set[str],
    ) -> None:
        receipt_tokens = {
            s.ticket.id: s.token
            for s in sent
            if not s.ticket.is_error and s.ticket.id and s.token not in removed
        }
        if not receipt_tokens:
            return
        event_data = event.model_dump()

        async def _check() -> None:
            summary = await self.reconciler.reconcile(event.user_id, receipt_tokens, event_data)
            logger.info(
                "Receipts for %s: %d checked, %d errors, %d tokens removed",
                notification_id,
                summary.checked,
                summary.errors,
                len(summary.removed_tokens),
            )

        self.task_runner.schedule(
            _check,
            self.config.receipt_check_delay_seconds,
            name=f"receipts:{notification_id}",
        )


async def log_pipeline_failure(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: Optional[str],
    error: Exception,
    record: Optional[dict[str, Any]],
) -> None:
    """Best-effort error row for an event that failed outside the per-chunk handling."""
    try:
        async with session_factory() as session:
            await NotificationErrorRepository(session).log(
                user_id,
                {"source": "pipeline", "message": str(error), "error_type": type(error).__name__},
                record,
            )
    except Exception as e:
        logger.error("Could not record pipeline failure for user %s: %s", user_id, e)

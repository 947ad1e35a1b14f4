"""Best-effort delivery telemetry."""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notifier.domain.notifications.models import PendingEvent, SentTicket
from notifier.infra.db.repositories.notification_metric_repo import NotificationMetricRepository

logger = logging.getLogger(__name__)


def delivery_status(sent: list[SentTicket], messages_built: int) -> str:
    """sent: every message got an ok ticket; failed: none did; partial otherwise."""
    ok = sum(1 for s in sent if not s.ticket.is_error)
    if messages_built and ok == messages_built:
        return "sent"
    if ok == 0:
        return "failed"
    return "partial"


class MetricsRecorder:
    """Writes one metric row per dispatched event. Never raises."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.metrics = NotificationMetricRepository(session)

    async def record(
        self,
        event: PendingEvent,
        notification_id: str,
        sent: list[SentTicket],
        messages_built: int,
        platforms: Optional[dict[str, Optional[str]]] = None,
        scheduled_hour: Optional[int] = None,
    ) -> bool:
        """
        Returns True when the row was written.

        platforms maps token to platform as resolved before any token cleanup,
        so devices removed during dispatch still count.
        """
        try:
            sent_platforms = sorted({(platforms or {}).get(s.token) for s in sent} - {None})
            metadata = event.data.get("metadata") if isinstance(event.data.get("metadata"), dict) else {}
            await self.metrics.record(
                {
                    "notification_id": notification_id,
                    "user_id": event.user_id,
                    "type": event.type,
                    "status": delivery_status(sent, messages_built),
                    "platform": ",".join(sent_platforms) or None,
                    "devices": messages_built,
                    "scheduled_hour": scheduled_hour,
                    "scheduled_for": metadata.get("scheduledFor"),
                    "user_timezone": metadata.get("userTimezone"),
                    "extra": {"ticket_errors": sum(1 for s in sent if s.ticket.is_error)},
                }
            )
            return True
        except Exception as e:
            logger.warning("Failed to record notification metrics for %s: %s", notification_id, e)
            try:
                await self.session.rollback()
            except Exception as rollback_error:
                logger.debug("Rollback after metrics failure also failed: %s", rollback_error)
            return False

"""Deferred reconciliation of push receipts."""
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notifier.domain.notifications.repositories import PushGateway
from notifier.infra.db.repositories.notification_error_repo import NotificationErrorRepository
from notifier.infra.db.repositories.push_token_repo import PushTokenRepository
from notifier.infra.push.expo_client import PushGatewayError

logger = logging.getLogger(__name__)


@dataclass
class ReconcileSummary:
    checked: int = 0
    errors: int = 0
    removed_tokens: list[str] = field(default_factory=list)
    failed_chunks: int = 0


class ReceiptReconciler:
    """
    Fetches delivery receipts for tickets sent earlier, logs receipt errors and
    prunes destinations the gateway reports as permanently unregistered.

    Runs after the webhook has answered, so it opens its own session.
    """

    def __init__(self, gateway: PushGateway, session_factory: async_sessionmaker[AsyncSession]):
        self.gateway = gateway
        self.session_factory = session_factory

    async def reconcile(
        self,
        user_id: str,
        receipt_tokens: dict[str, str],
        event_data: dict[str, Any],
    ) -> ReconcileSummary:
        """
        Args:
            user_id: Owner of the destinations.
            receipt_tokens: Receipt id -> token the ticket was issued for.
            event_data: Original event, stored with any error row.
        """
        summary = ReconcileSummary()
        if not receipt_tokens:
            return summary
        async with self.session_factory() as session:
            tokens = PushTokenRepository(session)
            errors = NotificationErrorRepository(session)
            for chunk in self.gateway.chunk_receipt_ids(list(receipt_tokens)):
                try:
                    receipts = await self.gateway.get_receipts(chunk)
                except PushGatewayError as e:
                    summary.failed_chunks += 1
                    logger.error("Receipt fetch failed for %d ids: %s", len(chunk), e)
                    continue
                summary.checked += len(receipts)
                for receipt_id, receipt in receipts.items():
                    if not receipt.is_error:
                        continue
                    summary.errors += 1
                    token = receipt_tokens.get(receipt_id)
                    logger.warning(
                        "Receipt %s error %s for user %s: %s",
                        receipt_id,
                        receipt.error_code,
                        user_id,
                        receipt.message,
                    )
                    await errors.log(
                        user_id,
                        {
                            "source": "receipt",
                            "receipt_id": receipt_id,
                            "token": token,
                            "receipt": receipt.model_dump(exclude_none=True),
                        },
                        event_data,
                    )
                    if receipt.is_permanent_token_error and token and token not in summary.removed_tokens:
                        await tokens.delete_token(user_id, token)
                        summary.removed_tokens.append(token)
                        logger.info("Removed unregistered push token for user %s: %s...", user_id, token[:20])
        return summary

"""Notification domain repository and gateway protocols."""
from datetime import datetime
from typing import Protocol, Sequence

from notifier.domain.notifications.models import PushMessage, PushReceipt, PushTicket


class NotificationRepository(Protocol):
    """Durable notifications (one per dispatched event)."""

    async def exists_since(self, user_id: str, type: str, since: datetime) -> bool:
        """True if the user has a notification of this type created at or after since."""
        ...


class PushGateway(Protocol):
    """Push gateway client. Owns batching limits and token format rules."""

    def is_valid_token(self, token: str) -> bool:
        ...

    def chunk_messages(self, messages: Sequence[PushMessage]) -> list[list[PushMessage]]:
        ...

    async def send_chunk(self, chunk: Sequence[PushMessage]) -> list[PushTicket]:
        ...

    def chunk_receipt_ids(self, receipt_ids: Sequence[str]) -> list[list[str]]:
        ...

    async def get_receipts(self, receipt_ids: Sequence[str]) -> dict[str, PushReceipt]:
        ...

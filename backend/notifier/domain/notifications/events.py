"""In-process publish/subscribe for notification lifecycle events."""
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], Awaitable[None]]

NOTIFICATION_CREATED = "notification.created"


class NotificationEventBus:
    """Listener registry. Inject one per app; tests build their own."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Call every listener; a failing listener is logged and does not stop the others."""
        for listener in list(self._listeners):
            try:
                await listener(event_type, payload)
            except Exception as e:
                logger.warning("Notification listener %r failed for %s: %s", listener, event_type, e)

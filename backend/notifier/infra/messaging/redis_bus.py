"""Redis publisher for realtime notification fan-out."""
import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from notifier.domain.notifications.events import Listener

logger = logging.getLogger(__name__)

USER_CHANNEL_PREFIX = "notifications:"


def user_channel(user_id: str) -> str:
    return f"{USER_CHANNEL_PREFIX}{user_id}"


class RedisBus:
    """Thin pub side of Redis pub/sub."""

    def __init__(self, url: str, client: Optional[Any] = None):
        self.url = url
        self._redis = client

    async def connect(self) -> None:
        if self._redis is None:
            self._redis = redis.from_url(self.url, decode_responses=True)

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def publish(self, channel: str, message: dict) -> None:
        if self._redis is None:
            await self.connect()
        await self._redis.publish(channel, json.dumps(message, default=str))

    async def ping(self) -> bool:
        if self._redis is None:
            await self.connect()
        return bool(await self._redis.ping())


def realtime_listener(bus: RedisBus) -> Listener:
    """Event bus listener forwarding each event to the owning user's channel."""

    async def _forward(event_type: str, payload: dict[str, Any]) -> None:
        user_id = payload.get("user_id")
        if not user_id:
            return
        await bus.publish(user_channel(user_id), {"type": event_type, "payload": payload})
        logger.debug("Published %s to %s", event_type, user_channel(user_id))

    return _forward

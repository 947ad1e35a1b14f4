"""Tests for the notification event bus and its Redis fan-out listener."""
import json

from notifier.domain.notifications.events import NOTIFICATION_CREATED, NotificationEventBus
from notifier.infra.messaging.redis_bus import RedisBus, realtime_listener, user_channel


class FakeRedis:
    def __init__(self):
        self.published = []
        self.closed = False

    async def publish(self, channel, message):
        self.published.append((channel, message))
        return 1

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


async def test_publish_reaches_every_listener():
    bus = NotificationEventBus()
    received = []

    async def first(event_type, payload):
        received.append(("first", event_type, payload["id"]))

    async def second(event_type, payload):
        received.append(("second", event_type, payload["id"]))

    bus.subscribe(first)
    bus.subscribe(second)
    await bus.publish(NOTIFICATION_CREATED, {"id": "n-1"})

    assert received == [("first", NOTIFICATION_CREATED, "n-1"), ("second", NOTIFICATION_CREATED, "n-1")]


async def test_failing_listener_does_not_stop_others():
    bus = NotificationEventBus()
    received = []

    async def broken(event_type, payload):
        raise ConnectionError("redis gone")

    async def healthy(event_type, payload):
        received.append(payload)

    bus.subscribe(broken)
    bus.subscribe(healthy)
    await bus.publish(NOTIFICATION_CREATED, {"id": "n-1"})

    assert received == [{"id": "n-1"}]


async def test_unsubscribe_and_idempotent_subscribe():
    bus = NotificationEventBus()

    async def listener(event_type, payload):
        pass

    bus.subscribe(listener)
    bus.subscribe(listener)
    assert bus.listener_count == 1
    bus.unsubscribe(listener)
    bus.unsubscribe(listener)
    assert bus.listener_count == 0


async def test_realtime_listener_publishes_to_user_channel():
    fake = FakeRedis()
    bus = NotificationEventBus()
    bus.subscribe(realtime_listener(RedisBus("redis://unused", client=fake)))

    await bus.publish(NOTIFICATION_CREATED, {"id": "n-1", "user_id": "u-9", "title": "Hi"})

    assert len(fake.published) == 1
    channel, message = fake.published[0]
    assert channel == user_channel("u-9") == "notifications:u-9"
    assert json.loads(message) == {
        "type": NOTIFICATION_CREATED,
        "payload": {"id": "n-1", "user_id": "u-9", "title": "Hi"},
    }


async def test_realtime_listener_ignores_payload_without_user():
    fake = FakeRedis()
    await realtime_listener(RedisBus("redis://unused", client=fake))(NOTIFICATION_CREATED, {"id": "n-1"})
    assert fake.published == []


async def test_redis_bus_disconnect_closes_client():
    fake = FakeRedis()
    bus = RedisBus("redis://unused", client=fake)
    assert await bus.ping() is True
    await bus.disconnect()
    assert fake.closed

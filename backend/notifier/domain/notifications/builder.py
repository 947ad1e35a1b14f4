"""Build one push message per destination token for an event."""
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from notifier.domain.notifications.models import (
    PendingEvent,
    PushMessage,
    ViewMilestonePayload,
)
from notifier.domain.notifications.templates import NotificationTemplate, resolve_template

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Messages to send plus the tokens that were filtered out."""

    messages: list[PushMessage] = field(default_factory=list)
    invalid_tokens: list[str] = field(default_factory=list)
    skipped_tokens: list[str] = field(default_factory=list)


class MessageBuilder:
    """Fans an event out into push messages, one per valid token."""

    def __init__(self, is_valid_token: Callable[[str], bool]):
        self._is_valid_token = is_valid_token

    def build(self, event: PendingEvent, tokens: Iterable[str], notification_id: str) -> BuildResult:
        """
        Validate each token and render a message for it.

        Malformed tokens go to invalid_tokens (the caller removes them from the store).
        When the event type has no template every token is skipped and logged.
        """
        result = BuildResult()
        template = resolve_template(event.notification_type)
        data = {**event.data, "notificationId": notification_id}
        data.setdefault("type", event.type)
        seen: set[str] = set()
        for token in tokens:
            if token in seen:
                continue
            seen.add(token)
            if not self._is_valid_token(token):
                logger.warning("Invalid push token format for user %s: %s...", event.user_id, token[:20])
                result.invalid_tokens.append(token)
                continue
            if template is None:
                logger.error(
                    "Unknown notification type %r for event %s; skipping token %s...",
                    event.type,
                    event.id,
                    token[:20],
                )
                result.skipped_tokens.append(token)
                continue
            result.messages.append(
                PushMessage(
                    to=token,
                    title=event.title or template.title,
                    body=event.message or _default_body(event, template),
                    sound=template.sound,
                    channel_id=template.channel_id,
                    priority=template.priority,
                    data=dict(data),
                )
            )
        return result


def _default_body(event: PendingEvent, template: NotificationTemplate) -> str:
    payload = event.payload()
    if isinstance(payload, ViewMilestonePayload) and payload.milestone:
        return f"A car in your favorites has reached {payload.milestone}+ views!"
    return template.body

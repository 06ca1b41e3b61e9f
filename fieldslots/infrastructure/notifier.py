"""
Notifier implementations.

RedisNotifier publishes each event as JSON on REDIS_EVENTS_CHANNEL for the
notification service to pick up. Publishing is best effort: when Redis is
unreachable the event is written to the log instead and the caller carries
on, since a missed notification must never undo a booking.
"""

import json

from fieldslots.core.config import get_settings
from fieldslots.core.logging import get_logger
from fieldslots.infrastructure.redis_client import get_redis
from fieldslots.services.interfaces.notifier import NotificationEvent, Notifier

logger = get_logger(__name__)


class LoggingNotifier(Notifier):
    """Writes events to the structured log only."""

    async def publish(self, event: NotificationEvent) -> None:
        logger.info("notification_event", **event.as_dict())


class RedisNotifier(Notifier):
    def __init__(self, channel: str = None):
        self.channel = channel or get_settings().REDIS_EVENTS_CHANNEL
        self._fallback = LoggingNotifier()

    async def publish(self, event: NotificationEvent) -> None:
        client = await get_redis()
        if client is None:
            await self._fallback.publish(event)
            return

        payload = json.dumps(event.as_dict(), default=str)
        try:
            receivers = await client.publish(self.channel, payload)
            logger.debug("notification_published", type=event.type, receivers=receivers)
        except Exception as e:
            logger.error("notification_publish_failed", type=event.type, error=str(e))
            await self._fallback.publish(event)

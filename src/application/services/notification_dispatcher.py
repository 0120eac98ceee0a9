"""Best-effort change notification dispatcher."""

import logging
from collections.abc import Iterable
from typing import Any

from domain.exceptions import DeliveryError
from domain.models import ChangeEvent
from infrastructure.notifications import NotificationPublisher
from observability import notifications_failed, notifications_published

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Publishes notifications without ever failing the invocation that asked for them.

    A DeliveryError is logged and dropped: the data it describes is already
    durably written. There is no retry; each call delivers at most once.
    """

    def __init__(self, publisher: NotificationPublisher, enabled: bool = True):
        self._publisher = publisher
        self._enabled = enabled

    async def notify_async(self, topic: str, payload: dict[str, Any]) -> bool:
        """Publish ``payload`` on ``topic``. Returns whether it was handed to the channel."""
        if not self._enabled:
            logger.debug(f"Notifications disabled, dropping message for {topic}")
            return False

        try:
            await self._publisher.publish(topic, payload)
        except DeliveryError as e:
            notifications_failed.add(1)
            logger.warning(f"⚠️ Notification to {topic} dropped: {e}")
            return False

        notifications_published.add(1)
        logger.info(f"✅ Notification published to {topic}")
        return True

    async def notify_changes_async(self, topic: str, event: ChangeEvent, watched_fields: Iterable[str]) -> bool:
        """Publish the watched fields of ``event.after`` when any of them changed.

        Values are sent as strings, the shape push-message data payloads expect.
        Watched fields missing from ``event.after`` are left out.
        """
        watched = list(watched_fields)
        changed = event.changed_fields()
        if event.after is None or not any(name in changed for name in watched):
            logger.debug(f"No watched field changed on {event.path}, nothing to notify")
            return False

        payload = {name: str(event.after.get(name)) for name in watched if event.after.get(name) is not None}
        return await self.notify_async(topic, payload)

"""Notification channels for best-effort change notifications."""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from domain.exceptions import DeliveryError

logger = logging.getLogger(__name__)


class NotificationPublisher(ABC):
    """Abstract fire-and-forget notification channel."""

    @abstractmethod
    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """Publish ``payload`` on ``topic``.

        Raises:
            DeliveryError: when the channel rejected or could not carry the message
        """
        pass


@dataclass(frozen=True)
class PublishedNotification:
    topic: str
    payload: dict[str, Any]


class InMemoryNotificationPublisher(NotificationPublisher):
    """Records published notifications for development and tests.

    Set ``fail_with`` to a reason string to make every publish fail.
    """

    def __init__(self) -> None:
        self.published: list[PublishedNotification] = []
        self.fail_with: str | None = None

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        if self.fail_with is not None:
            raise DeliveryError(topic, self.fail_with)
        self.published.append(PublishedNotification(topic=topic, payload=dict(payload)))

    def for_topic(self, topic: str) -> list[dict[str, Any]]:
        return [n.payload for n in self.published if n.topic == topic]


class RedisNotificationPublisher(NotificationPublisher):
    """Publishes JSON notifications over Redis pub/sub.

    Channel naming convention: ``{channel_prefix}:{topic}``
    """

    def __init__(self, redis_url: str = "redis://localhost:6379", channel_prefix: str = "notifications", client: redis.Redis | None = None):
        self._redis_url = redis_url
        self._channel_prefix = channel_prefix
        self._redis: redis.Redis | None = client

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self._redis is None:
            self._redis = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info(f"Connected to Redis at {self._redis_url}")

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client, raising if not connected."""
        if self._redis is None:
            raise RuntimeError("Redis not connected. Call connect() first.")
        return self._redis

    def channel(self, topic: str) -> str:
        return f"{self._channel_prefix}:{topic}"

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        try:
            receivers = await self.client.publish(self.channel(topic), json.dumps(payload, default=str))
        except (RedisError, RuntimeError, TypeError) as e:
            raise DeliveryError(topic, str(e)) from e
        logger.debug(f"Published notification on {self.channel(topic)} to {receivers} subscriber(s)")

"""Infrastructure layer for cross-cutting concerns."""

from .notifications import InMemoryNotificationPublisher, NotificationPublisher, PublishedNotification, RedisNotificationPublisher

__all__ = [
    # Notification channels
    "NotificationPublisher",
    "InMemoryNotificationPublisher",
    "PublishedNotification",
    "RedisNotificationPublisher",
]

"""Notification channel implementations."""

from .publisher import InMemoryNotificationPublisher, NotificationPublisher, PublishedNotification, RedisNotificationPublisher

__all__ = [
    "NotificationPublisher",
    "InMemoryNotificationPublisher",
    "PublishedNotification",
    "RedisNotificationPublisher",
]

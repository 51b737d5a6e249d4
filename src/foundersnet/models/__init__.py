"""Data models for the notification client."""

from foundersnet.models.notification import (
    Actor,
    Notification,
    NotificationType,
    RawActor,
    RawNotification,
)
from foundersnet.models.settings import SETTINGS_KEY, NotificationSettings

__all__ = [
    "Actor",
    "Notification",
    "NotificationSettings",
    "NotificationType",
    "RawActor",
    "RawNotification",
    "SETTINGS_KEY",
]

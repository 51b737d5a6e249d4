"""foundersnet - Real-time notification client for the Hindustan Founders Network."""

__version__ = "0.1.0"

from foundersnet.client.session import Session
from foundersnet.config import ClientConfig, load_config
from foundersnet.delivery.feed import NotificationFeed
from foundersnet.delivery.store import NotificationStore, Tab
from foundersnet.models.notification import Actor, Notification, NotificationType

__all__ = [
    "Actor",
    "ClientConfig",
    "Notification",
    "NotificationFeed",
    "NotificationStore",
    "NotificationType",
    "Session",
    "Tab",
    "load_config",
]

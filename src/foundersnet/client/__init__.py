"""Backend access: REST client and session context."""

from foundersnet.client.http import NotificationAPIError, NotificationsAPI
from foundersnet.client.session import QueryCache, Session, User

__all__ = ["NotificationAPIError", "NotificationsAPI", "QueryCache", "Session", "User"]

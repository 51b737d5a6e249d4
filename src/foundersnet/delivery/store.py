"""In-memory notification store for a feed session."""

import logging
from collections.abc import Iterator
from enum import Enum

from foundersnet.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


class Tab(str, Enum):
    """Feed tabs and the categories each one shows."""

    ALL = "all"
    NETWORK = "network"
    MENTIONS = "mentions"
    JOBS = "jobs"
    STARTUPS = "startups"

    @property
    def types(self) -> frozenset[NotificationType] | None:
        """Categories shown on the tab; None means every category."""
        return _TAB_TYPES[self]


_TAB_TYPES: dict[Tab, frozenset[NotificationType] | None] = {
    Tab.ALL: None,
    Tab.NETWORK: frozenset({NotificationType.CONNECTION}),
    Tab.MENTIONS: frozenset({NotificationType.MENTION, NotificationType.MESSAGE}),
    Tab.JOBS: frozenset({NotificationType.JOB}),
    Tab.STARTUPS: frozenset({NotificationType.PITCH}),
}


class NotificationStore:
    """Ordered, id-keyed set of notifications.

    Records are keyed by ``str(id)``; display order is kept in a separate
    index, newest arrival first. Nothing is ever evicted.
    """

    def __init__(self) -> None:
        self._records: dict[str, Notification] = {}
        # Keys in arrival order, oldest first; reversed for display
        self._order: list[str] = []

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Notification]:
        return iter(self.items())

    def __contains__(self, notification_id: object) -> bool:
        return str(notification_id) in self._records

    def get(self, notification_id: int | str) -> Notification | None:
        """Get a notification by ID."""
        return self._records.get(str(notification_id))

    def items(self) -> list[Notification]:
        """All notifications, newest arrival first."""
        return [self._records[key] for key in reversed(self._order)]

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._records.values() if not n.read)

    def prepend(self, notification: Notification) -> bool:
        """Insert a notification at the head of the feed.

        Returns False when the ID is already present. The existing record
        keeps its position; a read flag set by the backend is merged in.
        """
        key = notification.key
        existing = self._records.get(key)
        if existing is not None:
            if notification.read and not existing.read:
                existing.read = True
            logger.debug("Ignoring duplicate notification %s", key)
            return False

        self._records[key] = notification
        self._order.append(key)
        return True

    def extend(self, notifications: list[Notification]) -> list[Notification]:
        """Insert a batch at the head, preserving the batch's own order.

        Returns the notifications that were not already present.
        """
        inserted = [n for n in reversed(notifications) if self.prepend(n)]
        inserted.reverse()
        return inserted

    def mark_read(self, notification_id: int | str) -> bool:
        """Mark one notification read.

        Returns True only when the record existed and was unread.
        """
        notification = self._records.get(str(notification_id))
        if notification is None or notification.read:
            return False
        notification.read = True
        return True

    def mark_all_read(self) -> list[int | str]:
        """Mark every notification read; returns the IDs that changed."""
        changed = []
        for key in self._order:
            notification = self._records[key]
            if not notification.read:
                notification.read = True
                changed.append(notification.id)
        return changed

    def mark_unread(self, notification_id: int | str) -> None:
        """Undo an optimistic read acknowledgement."""
        notification = self._records.get(str(notification_id))
        if notification is not None:
            notification.read = False

    def by_tab(self, tab: Tab) -> list[Notification]:
        """Notifications shown on a feed tab, newest first."""
        types = tab.types
        if types is None:
            return self.items()
        return [n for n in self.items() if n.type in types]

    def unread_by_tab(self, tab: Tab) -> int:
        return sum(1 for n in self.by_tab(tab) if not n.read)

"""Rendering helpers for the notification feed."""

from datetime import datetime, timezone

from rich.markup import escape
from rich.table import Table

from foundersnet.delivery.store import NotificationStore, Tab
from foundersnet.models.notification import Notification, NotificationType

TAB_LABELS = {
    Tab.ALL: "All",
    Tab.NETWORK: "Network",
    Tab.MENTIONS: "Mentions",
    Tab.JOBS: "Jobs",
    Tab.STARTUPS: "Startups",
}

TYPE_STYLES = {
    NotificationType.CONNECTION: "blue",
    NotificationType.MESSAGE: "green",
    NotificationType.MENTION: "magenta",
    NotificationType.JOB: "yellow",
    NotificationType.PITCH: "cyan",
}


def format_relative(timestamp: datetime, now: datetime | None = None) -> str:
    """Short relative time: "just now", "5m ago", "3h ago", "2d ago".

    Anything a week or older is shown as a date.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    seconds = int((now - timestamp).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return timestamp.strftime("%Y-%m-%d")


def tab_title(store: NotificationStore, tab: Tab) -> str:
    """Tab label with its unread badge."""
    unread = store.unread_by_tab(tab)
    label = TAB_LABELS[tab]
    return f"{label} ({unread})" if unread else label


def notification_table(
    notifications: list[Notification],
    title: str = "Notifications",
    now: datetime | None = None,
) -> Table:
    """Build a rich table of notifications, unread rows in bold."""
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("From")
    table.add_column("Notification")
    table.add_column("When")

    for notification in notifications:
        style = TYPE_STYLES.get(notification.type, "white")
        text = notification.text[:60] + "..." if len(notification.text) > 60 else notification.text
        table.add_row(
            str(notification.id),
            f"[{style}]{notification.type.value}[/{style}]",
            escape(notification.actor.name),
            escape(text),
            format_relative(notification.timestamp, now),
            style=None if notification.read else "bold",
        )
    return table

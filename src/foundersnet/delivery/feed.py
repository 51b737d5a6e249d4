"""Notification feed: the client-side delivery pipeline.

Wires the push channel, the poll channel, the normalizer and the store,
and handles read acknowledgements:

    TransportSelector -> normalizer -> NotificationStore <- acknowledge()

Usage:

    async with Session(config) as session:
        async with NotificationFeed(session) as feed:
            ...
            await feed.acknowledge(notification_id)
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from foundersnet.client.http import NotificationAPIError
from foundersnet.client.session import Session
from foundersnet.delivery.normalizer import normalize_message, normalize_poll_response
from foundersnet.delivery.store import NotificationStore
from foundersnet.delivery.transport import ChannelState, TransportSelector, socket_url
from foundersnet.desktop import DesktopNotifier, Permission
from foundersnet.models.notification import Notification
from foundersnet.models.settings import NotificationSettings
from foundersnet.storage import LocalStorage, load_settings

logger = logging.getLogger(__name__)


def _always() -> bool:
    return True


def _never() -> bool:
    return False


class NotificationFeed:
    """Delivers notifications into a store and acknowledges them."""

    def __init__(
        self,
        session: Session,
        store: NotificationStore | None = None,
        notifier: DesktopNotifier | None = None,
        storage: LocalStorage | None = None,
        connect: Callable[..., Any] | None = None,
        is_visible: Callable[[], bool] = _always,
        is_focused: Callable[[], bool] = _never,
        on_error: Callable[[str], None] | None = None,
        on_new: Callable[[Notification], None] | None = None,
    ):
        self.session = session
        self.config = session.config
        self.store = store if store is not None else NotificationStore()
        self.notifier = notifier or DesktopNotifier()
        self.storage = storage or LocalStorage(self.config.storage_path)
        self.settings = NotificationSettings()
        self._is_visible = is_visible
        self._is_focused = is_focused
        self._on_error = on_error
        self._on_new = on_new

        transport_kwargs = {"connect": connect} if connect is not None else {}
        self.transport = TransportSelector(
            socket_url(self.config.base_url, self.config.ws_path),
            session.user_id,
            self._handle_push,
            **transport_kwargs,
        )
        self._poll_task: asyncio.Task | None = None
        # notification key -> read flag before the first unconfirmed update
        self._pending: dict[str, bool] = {}
        # notification key -> acknowledgement requests still awaiting the backend
        self._inflight: dict[str, int] = {}
        self.mounted = False

    async def __aenter__(self) -> "NotificationFeed":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.unmount()

    async def mount(self) -> None:
        """Load settings, fetch the list, open the socket, start polling."""
        if self.mounted:
            return
        self.mounted = True

        self.settings = load_settings(self.storage)
        try:
            await self.notifier.request_permission()
        except Exception as e:
            logger.debug("Desktop notification permission request failed: %s", e)

        await self.refresh()
        await self.transport.start()
        self._poll_task = asyncio.create_task(self._poll_loop())

    async def unmount(self) -> None:
        """Stop polling and close the socket."""
        if not self.mounted:
            return
        self.mounted = False

        if self._poll_task is not None:
            self._poll_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None
        await self.transport.stop()

    def reload_settings(self) -> NotificationSettings:
        self.settings = load_settings(self.storage)
        return self.settings

    # --- Delivery ---

    def _deliver(self, notifications: list[Notification], channel: str) -> list[Notification]:
        inserted = self.store.extend(notifications)
        if inserted:
            logger.info(
                "Delivered %d new notification(s) via %s (unread=%d)",
                len(inserted),
                channel,
                self.store.unread_count,
            )
        for notification in inserted:
            self._alert(notification)
            if self._on_new is not None:
                try:
                    self._on_new(notification)
                except Exception:
                    logger.exception(
                        "New-notification callback failed for id=%s", notification.id
                    )
        return inserted

    def _handle_push(self, message: dict[str, Any]) -> None:
        self._deliver(normalize_message(message), "socket")

    async def refresh(self) -> list[Notification]:
        """Poll the REST listing once; failures are logged, not raised."""
        try:
            records = await self.session.notifications.list_notifications()
        except NotificationAPIError as e:
            logger.warning("Notification poll failed: %s", e.message)
            return []
        return self._deliver(normalize_poll_response(records), "poll")

    def _poll_interval(self) -> float:
        if self.transport.state == ChannelState.UNAVAILABLE:
            return self.config.fallback_interval
        return self.config.poll_interval

    async def _poll_loop(self) -> None:
        while True:
            await self.transport.down.wait()
            await asyncio.sleep(self._poll_interval())

            # The fallback timer runs regardless of visibility
            if self.transport.state == ChannelState.CLOSED and not self._is_visible():
                continue
            try:
                await self.refresh()
            except Exception:
                logger.exception("Notification poll failed unexpectedly")

    def _alert(self, notification: Notification) -> None:
        if self.notifier.permission != Permission.GRANTED or self._is_focused():
            return
        if notification.read or not self.settings.allows_popup(notification.type):
            return
        try:
            self.notifier.show(notification.actor.name, notification.text)
        except Exception as e:
            logger.debug("Desktop notification failed: %s", e)

    # --- Acknowledgements ---

    def _report(self, message: str) -> None:
        logger.error(message)
        if self._on_error is not None:
            self._on_error(message)

    def _begin(self, key: str, read: bool) -> None:
        self._pending.setdefault(key, read)
        self._inflight[key] = self._inflight.get(key, 0) + 1

    def _settle(self, key: str, confirmed: bool) -> None:
        """Finish one acknowledgement request for a notification.

        A confirmed request makes the read flag final, so a failure of an
        overlapping request never reverts it. A failed request only rolls
        back once nothing else for the key is in flight.
        """
        remaining = self._inflight.pop(key, 1) - 1
        if remaining:
            self._inflight[key] = remaining

        if confirmed:
            self._pending.pop(key, None)
            self.store.mark_read(key)
        elif not remaining and self._pending.pop(key, True) is False:
            self.store.mark_unread(key)

    async def acknowledge(self, notification_id: int | str) -> bool:
        """Mark one notification read, optimistically.

        The store is updated first. If the backend rejects the request the
        record is reverted and the error reported through ``on_error``.
        """
        notification = self.store.get(notification_id)
        if notification is None:
            return False

        key = notification.key
        self._begin(key, notification.read)
        self.store.mark_read(key)
        try:
            await self.session.notifications.mark_read(notification.id)
        except NotificationAPIError as e:
            self._settle(key, confirmed=False)
            self._report(f"Failed to mark notification as read: {e.message}")
            return False
        self._settle(key, confirmed=True)
        return True

    async def acknowledge_all(self) -> bool:
        """Mark every notification read, optimistically.

        Requests already in flight for single notifications are covered by
        this one too.
        """
        changed = {str(notification_id) for notification_id in self.store.mark_all_read()}
        keys = changed | set(self._pending)
        for key in keys:
            self._begin(key, key not in changed)
        try:
            await self.session.notifications.mark_all_read()
        except NotificationAPIError as e:
            for key in keys:
                self._settle(key, confirmed=False)
            self._report(f"Failed to mark all notifications as read: {e.message}")
            return False
        for key in keys:
            self._settle(key, confirmed=True)
        return True

"""Push channel: the notification WebSocket.

The socket is attempted once per mount. It is never reconnected in-session;
when it fails the feed falls back to polling. ``down`` is set whenever the
channel is not delivering, which is what the poll loop waits on.

Message types:
- Outgoing:
    - {"type": "connection", "payload": {"userId": ...}}
- Incoming:
    - {"type": "connection", "payload": {"status": "connected", "userId": ...}}
    - {"type": "notification", "payload": {"notification": {...}}}
    - {"type": "notification", "payload": {"notifications": [...]}}
    - {"type": "error", "payload": {"message": "..."}}
"""

import asyncio
import json
import logging
from collections.abc import Callable
from contextlib import suppress
from enum import Enum
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import websockets
from websockets.exceptions import ConnectionClosed, InvalidURI, WebSocketException

logger = logging.getLogger(__name__)

_SOCKET_SCHEMES = {"http": "ws", "https": "wss", "ws": "ws", "wss": "wss"}


class ChannelState(str, Enum):
    """Lifecycle of the push channel."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    # Errored or closed after construction; poll every poll_interval
    CLOSED = "closed"
    # The connection could not even be constructed; poll every fallback_interval
    UNAVAILABLE = "unavailable"


def socket_url(origin: str, path: str = "/ws") -> str:
    """Derive the socket endpoint from the page origin.

    ``https://host:8443`` becomes ``wss://host:8443/ws``.
    """
    parts = urlsplit(origin)
    scheme = _SOCKET_SCHEMES.get(parts.scheme)
    if scheme is None or not parts.netloc:
        raise ValueError(f"Cannot derive a socket URL from origin {origin!r}")
    return urlunsplit((scheme, parts.netloc, path, "", ""))


class TransportSelector:
    """Opens the push channel and forwards notification events."""

    def __init__(
        self,
        url: str,
        user_id: int | str | None,
        on_message: Callable[[dict[str, Any]], None],
        connect: Callable[..., Any] = websockets.connect,
    ):
        self.url = url
        self.user_id = user_id
        self._on_message = on_message
        self._connect = connect
        self._websocket = None
        self._reader: asyncio.Task | None = None
        self.state = ChannelState.IDLE
        self.down = asyncio.Event()

    def _set_state(self, state: ChannelState) -> None:
        if state != self.state:
            logger.info("Notification socket %s -> %s", self.state.value, state.value)
        self.state = state
        if state in (ChannelState.CLOSED, ChannelState.UNAVAILABLE):
            self.down.set()
        else:
            self.down.clear()

    @property
    def is_open(self) -> bool:
        return self.state == ChannelState.OPEN

    async def start(self) -> ChannelState:
        """Attempt the connection once; never raises."""
        self._set_state(ChannelState.CONNECTING)

        try:
            connecting = self._connect(
                self.url,
                ping_interval=20,
                ping_timeout=10,
                close_timeout=5,
            )
        except Exception as e:
            logger.error("Could not create notification socket for %s: %s", self.url, e)
            self._set_state(ChannelState.UNAVAILABLE)
            return self.state

        try:
            self._websocket = await connecting
        except InvalidURI as e:
            logger.error("Invalid notification socket URL %s: %s", self.url, e)
            self._set_state(ChannelState.UNAVAILABLE)
            return self.state
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.warning("Notification socket connection failed: %s", e)
            self._set_state(ChannelState.CLOSED)
            return self.state

        self._set_state(ChannelState.OPEN)
        try:
            await self._websocket.send(
                json.dumps({"type": "connection", "payload": {"userId": self.user_id}})
            )
        except ConnectionClosed as e:
            logger.warning("Notification socket closed during handshake: %s", e)
            self._set_state(ChannelState.CLOSED)
            return self.state

        self._reader = asyncio.create_task(self._read_loop())
        return self.state

    async def _read_loop(self) -> None:
        try:
            async for raw in self._websocket:
                self._dispatch(raw)
        except ConnectionClosed as e:
            logger.warning("Notification socket closed: %s", e)
        except Exception as e:
            logger.error("Notification socket error: %s", e)
        finally:
            if self.state == ChannelState.OPEN:
                self._set_state(ChannelState.CLOSED)

    def _dispatch(self, raw: str | bytes) -> None:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")

        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Dropping non-JSON socket frame: %.80s", raw)
            return

        if not isinstance(message, dict):
            logger.error("Dropping socket message that is not an object")
            return

        msg_type = message.get("type")
        if msg_type != "notification":
            if msg_type == "error":
                logger.warning("Socket error from server: %s", message.get("payload"))
            else:
                logger.debug("Ignoring socket message of type %r", msg_type)
            return

        try:
            self._on_message(message)
        except Exception:
            logger.exception("Failed to handle notification event")

    async def stop(self) -> None:
        """Close the socket and stop reading."""
        if self._websocket is not None:
            try:
                await self._websocket.close()
            except Exception as e:
                logger.debug("Failed to close notification socket: %s", e)

        if self._reader is not None:
            self._reader.cancel()
            with suppress(asyncio.CancelledError):
                await self._reader
            self._reader = None

        self._websocket = None
        if self.state != ChannelState.UNAVAILABLE:
            self._set_state(ChannelState.CLOSED)

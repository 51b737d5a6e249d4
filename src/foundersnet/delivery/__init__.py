"""Real-time notification delivery with polling fallback."""

from foundersnet.delivery.feed import NotificationFeed
from foundersnet.delivery.normalizer import (
    normalize_message,
    normalize_poll_response,
    normalize_record,
)
from foundersnet.delivery.store import NotificationStore, Tab
from foundersnet.delivery.transport import ChannelState, TransportSelector, socket_url

__all__ = [
    "ChannelState",
    "NotificationFeed",
    "NotificationStore",
    "Tab",
    "TransportSelector",
    "normalize_message",
    "normalize_poll_response",
    "normalize_record",
    "socket_url",
]

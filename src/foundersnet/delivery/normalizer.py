"""Map push and poll payloads onto the canonical notification shape.

Two wire forms reach the client:

- socket envelopes: ``{"type": "notification", "payload": {"notification": {...}}}``
  or, for the backlog sent right after the handshake,
  ``{"type": "notification", "payload": {"notifications": [...]}}``
- REST poll responses: a JSON array of raw records

Malformed input is logged and dropped; nothing partial reaches the store.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from foundersnet.models.notification import Actor, Notification, RawNotification

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"


def _actor_name_from_content(content: str) -> str:
    """First whitespace-delimited token of the content.

    Stopgap for backends that embed the actor name in free text
    ("Priya sent a message").
    """
    tokens = content.split()
    return tokens[0] if tokens else "Unknown"


def _build_actor(raw: RawNotification) -> Actor:
    if raw.actor is not None:
        return Actor(
            id=raw.actor.id if raw.actor.id is not None else raw.relatedId,
            name=raw.actor.name,
            avatar_url=raw.actor.avatarUrl,
        )
    return Actor(id=raw.relatedId, name=_actor_name_from_content(raw.content))


def normalize_record(raw: Any, now: datetime | None = None) -> Notification | None:
    """Convert one raw backend record into a Notification.

    Returns None (after logging) when the record is malformed.
    """
    if not isinstance(raw, dict):
        logger.error("Dropping notification record that is not an object: %r", raw)
        return None

    try:
        record = RawNotification.model_validate(raw)
    except ValidationError as e:
        logger.error(
            "Dropping malformed notification record id=%r: %s",
            raw.get("id"),
            e.errors(include_url=False),
        )
        return None

    timestamp = record.createdAt or now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    return Notification(
        id=record.id,
        type=record.type,
        text=record.content,
        timestamp=timestamp,
        read=record.read,
        actor=_build_actor(record),
    )


def _normalize_many(records: list[Any], now: datetime | None) -> list[Notification]:
    notifications = []
    for raw in records:
        notification = normalize_record(raw, now=now)
        if notification is not None:
            notifications.append(notification)
    return notifications


def is_notification_event(message: Any) -> bool:
    """Whether a decoded socket message carries notifications."""
    return isinstance(message, dict) and message.get("type") == NOTIFICATION_EVENT


def normalize_message(message: Any, now: datetime | None = None) -> list[Notification]:
    """Extract notifications from a decoded socket envelope."""
    if not is_notification_event(message):
        return []

    payload = message.get("payload")
    if not isinstance(payload, dict):
        logger.error("Dropping notification event without a payload object")
        return []

    if "notification" in payload:
        notification = normalize_record(payload["notification"], now=now)
        return [notification] if notification is not None else []

    if "notifications" in payload:
        records = payload["notifications"]
        if not isinstance(records, list):
            logger.error("Dropping notification backlog that is not a list")
            return []
        return _normalize_many(records, now)

    logger.error("Dropping notification event with unknown payload keys: %s", list(payload))
    return []


def normalize_poll_response(records: Any, now: datetime | None = None) -> list[Notification]:
    """Normalize the array returned by ``GET /api/notifications``."""
    if not isinstance(records, list):
        logger.error("Dropping poll response that is not a list: %s", type(records).__name__)
        return []
    return _normalize_many(records, now)

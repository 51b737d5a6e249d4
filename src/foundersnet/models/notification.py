"""Notification models - the canonical record and its wire counterpart."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Notification categories shown in the feed."""

    CONNECTION = "connection"
    MESSAGE = "message"
    MENTION = "mention"
    JOB = "job"
    PITCH = "pitch"


class Actor(BaseModel):
    """Snapshot of the user who triggered a notification.

    Captured at delivery time; it is not refreshed when the user later
    changes their name or avatar.
    """

    id: int | str | None = Field(None, description="User ID of the actor")
    name: str = Field(..., description="Display name")
    avatar_url: str | None = Field(None, description="Avatar image reference")

    @property
    def initials(self) -> str:
        """Two-letter avatar fallback."""
        return self.name[:2].upper()


class Notification(BaseModel):
    """Canonical notification record held by the store."""

    id: int | str = Field(..., description="Backend notification ID")
    type: NotificationType = Field(..., description="Notification category")
    text: str = Field(..., description="Human-readable description")
    timestamp: datetime = Field(..., description="When the event occurred")
    read: bool = Field(False, description="Acknowledged by the user")
    actor: Actor = Field(..., description="Who triggered the notification")

    @property
    def key(self) -> str:
        """Store key; integer and string IDs of the same value collide."""
        return str(self.id)


class RawActor(BaseModel):
    """Structured actor object as sent by the backend."""

    id: int | str | None = None
    name: str
    avatarUrl: str | None = None

    model_config = {"extra": "ignore"}


class RawNotification(BaseModel):
    """Notification record as served by the backend."""

    id: int | str
    userId: int | str | None = None
    type: NotificationType
    content: str = Field(..., min_length=1)
    read: bool = False
    createdAt: datetime | None = None
    relatedId: int | str | None = None
    actor: RawActor | None = None

    model_config = {"extra": "ignore"}

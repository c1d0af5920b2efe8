"""Domain entities describing user notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

NOTIFICATION_TITLE_MAX_LENGTH = 160


@dataclass
class Notification:
    """Message delivered to ``receiver_id``, optionally sent by another user."""

    id: int | None
    sender_id: int | None
    receiver_id: int
    title: str
    body: str
    is_read: bool = False
    created_at: datetime | None = None


@dataclass(frozen=True)
class SenderSummary:
    """Public identity of the user who triggered a notification."""

    id: int
    username: str


@dataclass(frozen=True)
class NotificationSummary:
    """Read projection of a notification with its sender resolved."""

    id: int
    sender_id: int | None
    receiver_id: int
    title: str
    body: str
    is_read: bool
    created_at: datetime | None
    sender: SenderSummary | None = None


@dataclass(frozen=True)
class CreateNotificationPayload:
    """Input accepted when creating notifications."""

    receiver_id: int | None
    title: str
    body: str
    sender_id: int | None = None


__all__ = [
    "NOTIFICATION_TITLE_MAX_LENGTH",
    "CreateNotificationPayload",
    "Notification",
    "NotificationSummary",
    "SenderSummary",
]

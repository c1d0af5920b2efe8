"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationSenderRead(BaseModel):
    """Public identity of the notification sender."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int | None = None
    receiver_id: int
    title: str
    body: str
    is_read: bool
    created_at: datetime | None = None
    sender: NotificationSenderRead | None = None


class NotificationReadStatusUpdate(BaseModel):
    """Payload used to mark a notification as read or unread."""

    is_read: bool = Field(..., description="New read status of the notification")


class UnreadCountRead(BaseModel):
    """Number of unread notifications of the authenticated user."""

    count: int


__all__ = [
    "NotificationRead",
    "NotificationReadStatusUpdate",
    "NotificationSenderRead",
    "UnreadCountRead",
]

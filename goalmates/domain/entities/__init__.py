"""Domain entities exposed by the application."""

from .notification import (
    NOTIFICATION_TITLE_MAX_LENGTH,
    CreateNotificationPayload,
    Notification,
    NotificationSummary,
    SenderSummary,
)
from .user import User

__all__ = [
    "NOTIFICATION_TITLE_MAX_LENGTH",
    "CreateNotificationPayload",
    "Notification",
    "NotificationSummary",
    "SenderSummary",
    "User",
]

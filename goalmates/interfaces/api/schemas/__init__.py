from .notification import (
    NotificationRead,
    NotificationReadStatusUpdate,
    NotificationSenderRead,
    UnreadCountRead,
)

__all__ = [
    "NotificationRead",
    "NotificationReadStatusUpdate",
    "NotificationSenderRead",
    "UnreadCountRead",
]

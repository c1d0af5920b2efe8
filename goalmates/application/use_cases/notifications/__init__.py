"""Use cases for reading, creating and updating notifications."""

from .service import DEFAULT_LIST_LIMIT, NotificationService

__all__ = ["DEFAULT_LIST_LIMIT", "NotificationService"]

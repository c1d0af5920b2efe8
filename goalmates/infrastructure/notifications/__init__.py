"""Deferred email delivery for notifications."""

from .email_queue import NotificationEmailJob, NotificationEmailQueue
from .email_worker import NotificationEmailReport, NotificationEmailWorker

__all__ = [
    "NotificationEmailJob",
    "NotificationEmailQueue",
    "NotificationEmailReport",
    "NotificationEmailWorker",
]

"""Domain service owning notification reads, writes and their side effects."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Callable, Protocol

from sqlalchemy.orm import Session

from goalmates.domain.entities import (
    NOTIFICATION_TITLE_MAX_LENGTH,
    CreateNotificationPayload,
    Notification,
    NotificationSummary,
    SenderSummary,
)
from goalmates.domain.errors import NotFoundError, NotificationValidationError
from goalmates.infrastructure.repositories import NotificationRepository, UserRepository

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


class NotificationEventPublisher(Protocol):
    def publish_new(self, receiver_id: int, summary: NotificationSummary) -> None: ...

    def publish_update(self, user_id: int, summary: NotificationSummary) -> None: ...

    def publish_unread_count(self, user_id: int, count: int) -> None: ...


class EmailJobQueue(Protocol):
    def enqueue(self, notification_ids: Iterable[int]) -> None: ...


class NotificationService:
    """Create, list and update notifications for a database ``session``.

    Writes are committed before any realtime push happens. Pushes and email
    enqueues are best effort: their failures are logged and never hide a
    successful write from the caller.
    """

    def __init__(
        self,
        session: Session,
        *,
        publisher: NotificationEventPublisher,
        email_queue: EmailJobQueue | None = None,
        list_limit: int = DEFAULT_LIST_LIMIT,
    ) -> None:
        self._notifications = NotificationRepository(session)
        self._users = UserRepository(session)
        self._publisher = publisher
        self._email_queue = email_queue
        self._list_limit = list_limit

    def list_for_user(self, user_id: int) -> list[NotificationSummary]:
        """Return the latest notifications of ``user_id``, newest first."""

        notifications = self._notifications.list_for_receiver(
            user_id, limit=self._list_limit
        )
        senders = self._load_senders(notification.sender_id for notification in notifications)
        return [self._to_summary(notification, senders) for notification in notifications]

    def unread_count(self, user_id: int) -> int:
        return self._notifications.count_unread(user_id)

    def set_read_status(
        self, user_id: int, notification_id: int, is_read: bool
    ) -> NotificationSummary:
        """Flip the read flag of a notification owned by ``user_id``.

        Raises :class:`NotFoundError` when the notification does not exist or
        belongs to someone else.
        """

        notification = self._notifications.get_for_receiver(
            notification_id, receiver_id=user_id
        )
        if notification is None:
            raise NotFoundError("Notification", notification_id)

        notification.is_read = is_read
        saved = self._notifications.update(notification)

        summary = self._to_summary(saved, self._load_senders([saved.sender_id]))
        self._push(self._publisher.publish_update, user_id, summary)
        self._push_unread_counts([user_id])
        return summary

    def create_notification(self, payload: CreateNotificationPayload) -> NotificationSummary:
        """Persist one notification and push it to its receiver.

        Single notifications are not emailed; only :meth:`notify_many` feeds
        the email queue.
        """

        saved = self._notifications.create(self._build_notification(payload))
        summary = self._to_summary(saved, self._load_senders([saved.sender_id]))
        self._push(self._publisher.publish_new, summary.receiver_id, summary)
        self._push_unread_counts([summary.receiver_id])
        return summary

    def notify_many(
        self, payloads: Sequence[CreateNotificationPayload]
    ) -> list[NotificationSummary]:
        """Persist a batch of notifications, push them and queue their emails."""

        if not payloads:
            return []

        notifications = [self._build_notification(payload) for payload in payloads]
        saved = self._notifications.create_many(notifications)

        senders = self._load_senders(entry.sender_id for entry in saved)
        summaries = [self._to_summary(entry, senders) for entry in saved]
        for summary in summaries:
            self._push(self._publisher.publish_new, summary.receiver_id, summary)

        self._push_unread_counts(summary.receiver_id for summary in summaries)
        self._enqueue_emails([summary.id for summary in summaries])
        return summaries

    @staticmethod
    def _build_notification(payload: CreateNotificationPayload) -> Notification:
        if payload.receiver_id is None:
            raise NotificationValidationError("receiver_id is required")
        title = (payload.title or "").strip()
        body = (payload.body or "").strip()
        # Column width of notification.title; SQLite does not enforce it.
        if len(title) > NOTIFICATION_TITLE_MAX_LENGTH:
            raise NotificationValidationError(
                f"title must be at most {NOTIFICATION_TITLE_MAX_LENGTH} characters"
            )
        return Notification(
            id=None,
            sender_id=payload.sender_id,
            receiver_id=payload.receiver_id,
            title=title,
            body=body,
            is_read=False,
        )

    def _load_senders(self, sender_ids: Iterable[int | None]) -> dict[int, SenderSummary]:
        unique_ids = {sender_id for sender_id in sender_ids if sender_id is not None}
        if not unique_ids:
            return {}
        users = self._users.get_map_by_ids(unique_ids)
        return {
            user_id: SenderSummary(id=user_id, username=user.username)
            for user_id, user in users.items()
        }

    @staticmethod
    def _to_summary(
        notification: Notification, senders: dict[int, SenderSummary]
    ) -> NotificationSummary:
        sender = (
            senders.get(notification.sender_id)
            if notification.sender_id is not None
            else None
        )
        return NotificationSummary(
            id=notification.id,
            sender_id=notification.sender_id,
            receiver_id=notification.receiver_id,
            title=notification.title,
            body=notification.body,
            is_read=notification.is_read,
            created_at=notification.created_at,
            sender=sender,
        )

    def _push_unread_counts(self, user_ids: Iterable[int]) -> None:
        unique_ids = list(dict.fromkeys(user_ids))
        for user_id in unique_ids:
            count = self.unread_count(user_id)
            self._push(self._publisher.publish_unread_count, user_id, count)

    @staticmethod
    def _push(publish: Callable[..., None], *args: Any) -> None:
        try:
            publish(*args)
        except Exception:
            logger.exception("Realtime push %s failed", getattr(publish, "__name__", publish))

    def _enqueue_emails(self, notification_ids: list[int]) -> None:
        if self._email_queue is None or not notification_ids:
            return
        try:
            self._email_queue.enqueue(notification_ids)
        except Exception:
            logger.exception(
                "Could not enqueue notification emails for ids %s", notification_ids
            )


__all__ = ["DEFAULT_LIST_LIMIT", "NotificationService"]

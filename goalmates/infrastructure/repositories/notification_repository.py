"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from goalmates.domain.entities import Notification
from goalmates.infrastructure.models import NotificationModel
from goalmates.utils import ensure_utc, utc_now_naive


class NotificationRepository:
    """Provide read, count and upsert operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_receiver(
        self,
        receiver_id: int,
        *,
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.receiver_id == receiver_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_by_ids(self, notification_ids: Iterable[int]) -> Sequence[Notification]:
        ids = {int(notification_id) for notification_id in notification_ids}
        if not ids:
            return []
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id.in_(ids))
            .order_by(NotificationModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def get_for_receiver(
        self, notification_id: int, *, receiver_id: int
    ) -> Notification | None:
        model = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id == notification_id,
                NotificationModel.receiver_id == receiver_id,
            )
            .first()
        )
        return self._to_entity(model) if model else None

    def count_unread(self, receiver_id: int) -> int:
        return (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.receiver_id == receiver_id,
                NotificationModel.is_read.is_(False),
            )
            .count()
        )

    def create(self, notification: Notification) -> Notification:
        return self.create_many([notification])[0]

    def create_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        """Insert ``notifications`` in a single transaction."""

        if not notifications:
            return []
        models = []
        for notification in notifications:
            model = NotificationModel()
            self._apply_entity_to_model(model, notification)
            model.created_at = (
                _to_naive_utc(notification.created_at) or utc_now_naive()
            )
            models.append(model)
        self.session.add_all(models)
        self.session.commit()
        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def update(self, notification: Notification) -> Notification:
        if notification.id is None:
            raise ValueError("Notification id is required for updates")
        model = self.session.get(NotificationModel, notification.id)
        if model is None:
            msg = f"Notification with id {notification.id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        model.sender_id = notification.sender_id
        model.receiver_id = notification.receiver_id
        model.title = notification.title
        model.body = notification.body
        model.is_read = bool(notification.is_read)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            sender_id=model.sender_id,
            receiver_id=model.receiver_id,
            title=model.title,
            body=model.body,
            is_read=bool(model.is_read),
            created_at=ensure_utc(model.created_at),
        )


def _to_naive_utc(value: datetime | None) -> datetime | None:
    normalized = ensure_utc(value)
    return normalized.replace(tzinfo=None) if normalized else None


__all__ = ["NotificationRepository"]

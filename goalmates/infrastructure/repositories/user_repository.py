"""Persistence layer for user data."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from goalmates.domain.entities import User
from goalmates.infrastructure.models import UserModel
from goalmates.utils import utc_now_naive


class UserRepository:
    """Provide lookups for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_map_by_ids(self, user_ids: Iterable[int | None]) -> dict[int, User]:
        """Return the users matching ``user_ids`` keyed by id, in one query."""

        unique_ids = {int(user_id) for user_id in user_ids if user_id is not None}
        if not unique_ids:
            return {}
        query = self.session.query(UserModel).filter(UserModel.id.in_(unique_ids))
        return {model.id: self._to_entity(model) for model in query.all()}

    def create(self, user: User) -> User:
        model = UserModel()
        self._apply_entity_to_model(model, user)
        model.created_at = user.created_at or utc_now_naive()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            first_name=model.first_name,
            is_email_verified=bool(model.is_email_verified),
            is_chat_enabled=bool(model.is_chat_enabled),
            is_active=bool(model.is_active),
            created_at=model.created_at,
        )

    @staticmethod
    def _apply_entity_to_model(model: UserModel, user: User) -> None:
        model.username = user.username
        model.email = user.email
        model.first_name = user.first_name
        model.is_email_verified = user.is_email_verified
        model.is_chat_enabled = user.is_chat_enabled
        model.is_active = user.is_active

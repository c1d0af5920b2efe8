"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from goalmates.domain.entities import NOTIFICATION_TITLE_MAX_LENGTH
from goalmates.infrastructure.database import Base
from goalmates.utils import utc_now_naive


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_receiver_created", "receiver_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(
        Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    receiver_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(NOTIFICATION_TITLE_MAX_LENGTH), nullable=False)
    body = Column(Text, nullable=False)
    is_read = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive)

    sender = relationship("UserModel", foreign_keys=[sender_id], lazy="select")
    receiver = relationship("UserModel", foreign_keys=[receiver_id], lazy="select")


__all__ = ["NotificationModel"]

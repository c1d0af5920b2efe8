"""SQLAlchemy model for the user table."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import expression

from goalmates.infrastructure.database import Base
from goalmates.utils import utc_now_naive


class UserModel(Base):
    """Database representation of a player account."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(120), nullable=False, unique=True, index=True)
    first_name = Column(String(80), nullable=True)
    is_email_verified = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )
    is_chat_enabled = Column(
        Boolean,
        nullable=False,
        default=True,
        server_default=expression.true(),
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now_naive)


__all__ = ["UserModel"]

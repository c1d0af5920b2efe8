"""Domain entity representing a user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Attributes of a player account that the notification pipeline relies on."""

    id: int | None
    username: str
    email: str
    first_name: str | None = None
    is_email_verified: bool = False
    is_chat_enabled: bool = True
    is_active: bool = True
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        """Return the name used to greet the user in emails."""

        return self.first_name or self.username

"""Realtime gateway for the chat namespace."""

from __future__ import annotations

from typing import Any, Iterable

from goalmates.domain.entities import User

from .gateway import POLICY_VIOLATION, RealtimeConnection, RealtimeGateway

MESSAGE_EVENT = "chat:message"
DISABLED_EVENT = "chat:disabled"


class ChatGateway(RealtimeGateway):
    """Broadcast chat messages to team members or to every connected player."""

    namespace = "chat"

    def is_eligible(self, user: User) -> bool:
        return user.is_active and user.is_chat_enabled

    async def reject_unknown_user(self, connection: RealtimeConnection, user_id: int) -> None:
        await self._signal_disabled(connection)

    async def reject_ineligible(self, connection: RealtimeConnection, user: User) -> None:
        await self._signal_disabled(connection)

    async def _signal_disabled(self, connection: RealtimeConnection) -> None:
        # The client needs an explicit signal to hide the chat instead of retrying.
        await connection.accept()
        try:
            await connection.send(DISABLED_EVENT, None)
        finally:
            await connection.close(POLICY_VIOLATION)

    async def emit_message_to_users(
        self, user_ids: Iterable[int], message: dict[str, Any]
    ) -> None:
        await self.emit_to_users(user_ids, MESSAGE_EVENT, message)

    async def emit_message_to_all(self, message: dict[str, Any]) -> None:
        await self.emit_to_all(MESSAGE_EVENT, message)


__all__ = ["ChatGateway", "DISABLED_EVENT", "MESSAGE_EVENT"]

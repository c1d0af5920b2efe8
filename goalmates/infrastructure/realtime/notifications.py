"""Realtime gateway and publisher for the notifications namespace."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Set

from anyio import from_thread

from goalmates.domain.entities import NotificationSummary
from goalmates.utils import isoformat_or_none

from .gateway import RealtimeGateway

logger = logging.getLogger(__name__)

NEW_EVENT = "notification:new"
UPDATE_EVENT = "notification:update"
COUNT_EVENT = "notification:count"


def serialize_notification(summary: NotificationSummary) -> dict[str, Any]:
    """Return the websocket payload representation for ``summary``."""

    return {
        "id": summary.id,
        "sender_id": summary.sender_id,
        "receiver_id": summary.receiver_id,
        "title": summary.title,
        "body": summary.body,
        "is_read": summary.is_read,
        "created_at": isoformat_or_none(summary.created_at),
        "sender": (
            {"id": summary.sender.id, "username": summary.sender.username}
            if summary.sender
            else None
        ),
    }


class NotificationsGateway(RealtimeGateway):
    """Deliver notification events to the connected sockets of their receivers."""

    namespace = "notifications"

    async def emit_new_notification(self, user_id: int, summary: NotificationSummary) -> None:
        await self.emit_to_user(user_id, NEW_EVENT, serialize_notification(summary))

    async def emit_updated_notification(
        self, user_id: int, summary: NotificationSummary
    ) -> None:
        await self.emit_to_user(user_id, UPDATE_EVENT, serialize_notification(summary))

    async def emit_unread_count(self, user_id: int, count: int) -> None:
        await self.emit_to_user(user_id, COUNT_EVENT, {"count": count})


class NotificationPublisher:
    """Schedule notification events from synchronous code.

    Inside the event loop the emit is queued as a task; from a worker thread it
    runs on the loop and returns once delivered, so consecutive publishes keep
    their order.
    """

    def __init__(self, gateway: NotificationsGateway) -> None:
        self._gateway = gateway
        self._tasks: Set[asyncio.Task] = set()

    def publish_new(self, receiver_id: int, summary: NotificationSummary) -> None:
        self._schedule(self._gateway.emit_new_notification, receiver_id, summary)

    def publish_update(self, user_id: int, summary: NotificationSummary) -> None:
        self._schedule(self._gateway.emit_updated_notification, user_id, summary)

    def publish_unread_count(self, user_id: int, count: int) -> None:
        self._schedule(self._gateway.emit_unread_count, user_id, count)

    def _schedule(self, emitter: Callable[..., Awaitable[None]], *args: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            from_thread.run(emitter, *args)
        else:
            task = loop.create_task(emitter(*args))
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Realtime notification push failed: %r", exc)


__all__ = [
    "COUNT_EVENT",
    "NEW_EVENT",
    "UPDATE_EVENT",
    "NotificationPublisher",
    "NotificationsGateway",
    "serialize_notification",
]

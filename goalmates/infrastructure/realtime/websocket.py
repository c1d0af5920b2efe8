"""Adapter exposing a FastAPI websocket as a :class:`RealtimeConnection`."""

from __future__ import annotations

from typing import Any

from fastapi import WebSocket

from .gateway import POLICY_VIOLATION, ConnectionHandshake, RealtimeConnection

BEARER_SUBPROTOCOL = "bearer"


class WebSocketConnection(RealtimeConnection):
    """Wrap ``websocket``; messages are sent as ``{"type": event, "data": payload}``.

    Browsers cannot set headers on websocket requests, so the handshake auth
    payload is read from the subprotocol offer ``["bearer", "<token>"]``.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.user_id: int | None = None
        subprotocols = list(websocket.scope.get("subprotocols") or [])
        self._uses_bearer_subprotocol = (
            len(subprotocols) >= 2 and subprotocols[0] == BEARER_SUBPROTOCOL
        )
        auth = {"token": subprotocols[1]} if self._uses_bearer_subprotocol else {}
        self._handshake = ConnectionHandshake(
            headers=dict(websocket.headers),
            auth=auth,
            query=dict(websocket.query_params),
        )

    @property
    def handshake(self) -> ConnectionHandshake:
        return self._handshake

    async def accept(self) -> None:
        subprotocol = BEARER_SUBPROTOCOL if self._uses_bearer_subprotocol else None
        await self.websocket.accept(subprotocol=subprotocol)

    async def close(self, code: int = POLICY_VIOLATION) -> None:
        await self.websocket.close(code=code)

    async def send(self, event: str, payload: Any) -> None:
        await self.websocket.send_json({"type": event, "data": payload})


__all__ = ["BEARER_SUBPROTOCOL", "WebSocketConnection"]

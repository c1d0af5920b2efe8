"""Websocket handler for the chat namespace."""

from fastapi import APIRouter, WebSocket

from .notifications import serve_realtime_connection

router = APIRouter(prefix="/chat", tags=["chat"])


@router.websocket("/ws")
async def chat_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint receiving ``chat:message`` events for chat-enabled users."""

    await serve_realtime_connection(websocket, websocket.app.state.chat_gateway)

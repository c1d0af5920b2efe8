"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from goalmates.application.use_cases.notifications import NotificationService
from goalmates.domain.entities import NotificationSummary, User
from goalmates.domain.errors import NotFoundError
from goalmates.infrastructure.realtime import RealtimeGateway, WebSocketConnection
from goalmates.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_service,
)
from goalmates.interfaces.api.schemas import (
    NotificationRead,
    NotificationReadStatusUpdate,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _to_schema(summary: NotificationSummary) -> NotificationRead:
    return NotificationRead.model_validate(summary)


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
) -> list[NotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    return [_to_schema(summary) for summary in service.list_for_user(current_user.id)]


@router.get("/unread-count", response_model=UnreadCountRead)
def get_unread_count(
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountRead:
    return UnreadCountRead(count=service.unread_count(current_user.id))


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def update_read_status(
    notification_id: int,
    payload: NotificationReadStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    """Mark one of the user's notifications as read or unread."""

    try:
        summary = service.set_read_status(current_user.id, notification_id, payload.is_read)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
        ) from exc
    return _to_schema(summary)


async def serve_realtime_connection(websocket: WebSocket, gateway: RealtimeGateway) -> None:
    """Authenticate ``websocket`` through ``gateway`` and keep it open until it drops."""

    connection = WebSocketConnection(websocket)
    if not await gateway.handle_connect(connection):
        return

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except (ValueError, KeyError):
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        gateway.handle_disconnect(connection)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notification events to the authenticated user."""

    await serve_realtime_connection(websocket, websocket.app.state.notifications_gateway)

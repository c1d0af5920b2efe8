"""Realtime websocket helpers for the infrastructure layer."""

from .chat import ChatGateway
from .gateway import (
    ConnectionHandshake,
    RealtimeConnection,
    RealtimeGateway,
    extract_bearer_token,
)
from .notifications import (
    NotificationPublisher,
    NotificationsGateway,
    serialize_notification,
)
from .registry import ConnectionRegistry
from .websocket import WebSocketConnection

__all__ = [
    "ChatGateway",
    "ConnectionHandshake",
    "ConnectionRegistry",
    "NotificationPublisher",
    "NotificationsGateway",
    "RealtimeConnection",
    "RealtimeGateway",
    "WebSocketConnection",
    "extract_bearer_token",
    "serialize_notification",
]

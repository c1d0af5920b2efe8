"""Authenticated realtime gateways built on top of :class:`ConnectionRegistry`."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from goalmates.domain.entities import User

from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008
INTERNAL_ERROR = 1011

TokenVerifier = Callable[[str], int]
UserLoader = Callable[[int], "User | None"]


@dataclass(frozen=True)
class ConnectionHandshake:
    """Credentials material presented by a client when it connects."""

    headers: Mapping[str, str] = field(default_factory=dict)
    auth: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)


def extract_bearer_token(handshake: ConnectionHandshake) -> str | None:
    """Return the bearer token from the header, the auth payload or the query."""

    header = _header_value(handshake.headers, "authorization")
    if isinstance(header, str) and header.startswith("Bearer "):
        token = header[len("Bearer ") :].strip()
        if token:
            return token
    for candidate in (handshake.auth.get("token"), handshake.query.get("token")):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def _header_value(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    for key, candidate in headers.items():
        if key.lower() == name:
            return candidate
    return None


class RealtimeConnection(ABC):
    """Transport-neutral handle for one client connection."""

    user_id: int | None = None

    @property
    @abstractmethod
    def handshake(self) -> ConnectionHandshake:
        """Return the credentials presented when connecting."""

    @abstractmethod
    async def accept(self) -> None:
        """Complete the handshake."""

    @abstractmethod
    async def close(self, code: int = POLICY_VIOLATION) -> None:
        """Terminate the connection."""

    @abstractmethod
    async def send(self, event: str, payload: Any) -> None:
        """Deliver ``event`` with ``payload`` to the client."""


class RealtimeGateway:
    """Authenticate connections for one namespace and fan events out to them."""

    namespace = "default"

    def __init__(
        self,
        *,
        token_verifier: TokenVerifier,
        user_loader: UserLoader,
    ) -> None:
        self._verify_token = token_verifier
        self._load_user = user_loader
        self._registry: ConnectionRegistry[RealtimeConnection] = ConnectionRegistry(
            self.namespace
        )

    async def handle_connect(self, connection: RealtimeConnection) -> bool:
        """Authenticate ``connection`` and register it; close it otherwise."""

        token = extract_bearer_token(connection.handshake)
        if not token:
            logger.warning("Realtime connection to %s refused: missing token", self.namespace)
            await connection.close(POLICY_VIOLATION)
            return False

        try:
            user_id = self._verify_token(token)
        except ValueError as exc:
            logger.warning("Realtime connection to %s refused: %s", self.namespace, exc)
            await connection.close(POLICY_VIOLATION)
            return False

        try:
            user = self._load_user(user_id)
        except Exception:
            logger.exception(
                "Realtime connection to %s refused: could not load user %s",
                self.namespace,
                user_id,
            )
            await connection.close(INTERNAL_ERROR)
            return False

        if user is None:
            logger.warning(
                "Realtime connection to %s refused: unknown user %s",
                self.namespace,
                user_id,
            )
            await self.reject_unknown_user(connection, user_id)
            return False

        if not self.is_eligible(user):
            logger.info(
                "Realtime connection to %s refused: user %s is not eligible",
                self.namespace,
                user_id,
            )
            await self.reject_ineligible(connection, user)
            return False

        await connection.accept()
        connection.user_id = user_id
        self._registry.add(user_id, connection)
        logger.debug(
            "User %s connected to %s (%s live connections)",
            user_id,
            self.namespace,
            len(self._registry.connections_for(user_id)),
        )
        return True

    def handle_disconnect(self, connection: RealtimeConnection) -> None:
        user_id = connection.user_id
        if user_id is None:
            return
        self._registry.discard(user_id, connection)

    def is_eligible(self, user: User) -> bool:
        """Return whether ``user`` may open a connection; checked at connect time."""

        return user.is_active

    async def reject_unknown_user(self, connection: RealtimeConnection, user_id: int) -> None:
        await connection.close(POLICY_VIOLATION)

    async def reject_ineligible(self, connection: RealtimeConnection, user: User) -> None:
        await connection.close(POLICY_VIOLATION)

    def is_connected(self, user_id: int) -> bool:
        return self._registry.has_user(user_id)

    def connection_count(self, user_id: int | None = None) -> int:
        if user_id is None:
            return len(self._registry)
        return len(self._registry.connections_for(user_id))

    async def emit_to_user(self, user_id: int, event: str, payload: Any) -> None:
        """Send ``event`` to every live connection of ``user_id``; no-op when offline."""

        for connection in self._registry.connections_for(user_id):
            await self._deliver(connection, event, payload)

    async def emit_to_users(self, user_ids: Iterable[int], event: str, payload: Any) -> None:
        seen: set[int] = set()
        for user_id in user_ids:
            if user_id in seen:
                continue
            seen.add(user_id)
            await self.emit_to_user(user_id, event, payload)

    async def emit_to_all(self, event: str, payload: Any) -> None:
        for connection in self._registry.all_connections():
            await self._deliver(connection, event, payload)

    async def _deliver(self, connection: RealtimeConnection, event: str, payload: Any) -> None:
        try:
            await connection.send(event, payload)
        except Exception as exc:
            logger.warning(
                "Dropping %s connection of user %s after failed send of %s: %s",
                self.namespace,
                connection.user_id,
                event,
                exc,
            )
            self.handle_disconnect(connection)


__all__ = [
    "ConnectionHandshake",
    "INTERNAL_ERROR",
    "POLICY_VIOLATION",
    "RealtimeConnection",
    "RealtimeGateway",
    "extract_bearer_token",
]

"""Per-namespace bookkeeping of live realtime connections."""

from __future__ import annotations

from typing import Dict, Generic, Hashable, Set, TypeVar

ConnectionT = TypeVar("ConnectionT", bound=Hashable)


class ConnectionRegistry(Generic[ConnectionT]):
    """Map user identifiers to the set of their live connections.

    A connection belongs to at most one user at a time and users without
    connections have no entry. All mutations happen on the event loop thread.
    """

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        self._connections: Dict[int, Set[ConnectionT]] = {}
        self._owners: Dict[ConnectionT, int] = {}

    def add(self, user_id: int, connection: ConnectionT) -> None:
        """Register ``connection`` for ``user_id``."""

        previous_owner = self._owners.get(connection)
        if previous_owner is not None and previous_owner != user_id:
            self.discard(previous_owner, connection)
        self._connections.setdefault(user_id, set()).add(connection)
        self._owners[connection] = user_id

    def discard(self, user_id: int, connection: ConnectionT) -> bool:
        """Remove ``connection`` from ``user_id``; return whether it was present."""

        connections = self._connections.get(user_id)
        if connections is None or connection not in connections:
            return False
        connections.discard(connection)
        self._owners.pop(connection, None)
        if not connections:
            del self._connections[user_id]
        return True

    def connections_for(self, user_id: int) -> tuple[ConnectionT, ...]:
        return tuple(self._connections.get(user_id, ()))

    def all_connections(self) -> tuple[ConnectionT, ...]:
        return tuple(
            connection
            for connections in self._connections.values()
            for connection in connections
        )

    def has_user(self, user_id: int) -> bool:
        return user_id in self._connections

    @property
    def user_count(self) -> int:
        return len(self._connections)

    def __len__(self) -> int:
        return len(self._owners)


__all__ = ["ConnectionRegistry"]

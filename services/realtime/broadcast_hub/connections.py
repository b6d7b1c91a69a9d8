"""Registry of live WebSocket connections."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from services.realtime.broadcast_hub.domain import Connection, ConnectionState


class ConnectionRegistry:
    """Connections keyed by id behind one coarse lock; no awaits inside."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._lock = threading.Lock()

    def add(self, connection: Connection) -> None:
        with self._lock:
            if connection.id in self._connections:
                raise ValueError(f"duplicate connection id: {connection.id}")
            self._connections[connection.id] = connection

    def get(self, connection_id: str) -> Connection | None:
        with self._lock:
            return self._connections.get(connection_id)

    def get_many(self, connection_ids: Iterable[str]) -> list[Connection]:
        """Resolve ids that are still registered; unknown ids are skipped."""
        with self._lock:
            return [
                self._connections[connection_id]
                for connection_id in connection_ids
                if connection_id in self._connections
            ]

    def begin_close(self, connection_id: str) -> Connection | None:
        """Move an open connection to CLOSING; ``None`` if absent or already closing."""
        with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None or connection.state is not ConnectionState.OPEN:
                return None
            connection.state = ConnectionState.CLOSING
            return connection

    def remove(self, connection_id: str) -> Connection | None:
        with self._lock:
            return self._connections.pop(connection_id, None)

    def snapshot(self) -> list[Connection]:
        with self._lock:
            return list(self._connections.values())

    def for_principal(self, principal_id: str) -> list[Connection]:
        with self._lock:
            return [
                connection
                for connection in self._connections.values()
                if connection.principal_id == principal_id
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

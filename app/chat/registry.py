"""Live WebSocket connections for the chat room."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from fastapi import WebSocket, WebSocketDisconnect

from .exceptions import ConnectionLostError


logger = logging.getLogger("app.chat.registry")


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class Connection:
    """One client's duplex channel, from handshake to close.

    A Connection only moves from ``CONNECTED`` to ``DISCONNECTED``; a client
    that reconnects gets a new Connection. Frames are sent at most once:
    a failed send marks the connection disconnected and is never retried.
    """

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or uuid.uuid4().hex
        self.state = ConnectionState.CONNECTED
        self.connected_at = datetime.now(timezone.utc)
        # One frame at a time per socket when several broadcasts overlap
        self._send_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    async def send_json(self, payload: Dict[str, Any]) -> None:
        if not self.is_connected:
            raise ConnectionLostError(self.connection_id)

        async with self._send_lock:
            try:
                await self.websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                self.mark_disconnected()
                raise ConnectionLostError(self.connection_id, str(exc) or type(exc).__name__) from exc

    async def close(self, code: int = 1001) -> None:
        if not self.is_connected:
            return
        self.mark_disconnected()
        try:
            await self.websocket.close(code=code)
        except (RuntimeError, OSError) as exc:
            logger.debug("Close failed for connection %s: %s", self.connection_id, exc)

    def mark_disconnected(self) -> None:
        self.state = ConnectionState.DISCONNECTED

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Connection) and other.connection_id == self.connection_id

    def __hash__(self) -> int:
        return hash(self.connection_id)

    def __repr__(self) -> str:
        return f"Connection({self.connection_id!r}, {self.state.value})"


class ConnectionRegistry:
    """The set of currently live connections. In-memory only.

    Mutations never suspend, so they are atomic with respect to other tasks
    on the event loop. ``all()`` returns a snapshot that later joins and
    leaves do not affect.
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, connection: Connection) -> None:
        """Add a connection. Registering the same connection twice is a no-op."""
        if connection.connection_id in self._connections:
            return
        self._connections[connection.connection_id] = connection
        logger.info(
            "WebSocket connected: connection_id=%s, total_connections=%d",
            connection.connection_id,
            len(self._connections),
        )

    def unregister(self, connection: Connection) -> None:
        """Remove a connection and mark it disconnected. Unknown connections are ignored."""
        if self._connections.pop(connection.connection_id, None) is None:
            return
        connection.mark_disconnected()
        logger.info(
            "WebSocket disconnected: connection_id=%s, total_connections=%d",
            connection.connection_id,
            len(self._connections),
        )

    def all(self) -> FrozenSet[Connection]:
        return frozenset(self._connections.values())

    def count(self) -> int:
        return len(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        return isinstance(connection, Connection) and connection.connection_id in self._connections

    async def close_all(self) -> None:
        """Close and drop every live connection. Used on shutdown."""
        connections = self.all()
        for connection in connections:
            await connection.close()
            self.unregister(connection)
        if connections:
            logger.info("Closed %d WebSocket connections on shutdown", len(connections))

"""
WebSocket Connection Registry

Tracks the live set of client WebSocket connections that receive broadcasts.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable
from uuid import UUID, uuid4

import structlog
from fastapi import WebSocket
from fastapi.websockets import WebSocketState

logger = structlog.get_logger()


class ConnectionState(str, Enum):
    """Transport readiness of a client connection."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(eq=False)
class ClientConnection:
    """
    One client WebSocket endpoint.

    Membership in the registry is by object identity; ``connection_id`` only
    labels log lines.
    """

    websocket: WebSocket
    connection_id: UUID = field(default_factory=uuid4)
    connected_at: datetime = field(default_factory=datetime.utcnow)
    messages_received: int = 0
    messages_sent: int = 0
    closing: bool = False

    @property
    def state(self) -> ConnectionState:
        """Readiness as reported by the transport."""
        if (
            self.websocket.client_state == WebSocketState.DISCONNECTED
            or self.websocket.application_state == WebSocketState.DISCONNECTED
        ):
            return ConnectionState.CLOSED
        if self.closing:
            return ConnectionState.CLOSING
        if self.websocket.client_state == WebSocketState.CONNECTING:
            return ConnectionState.CONNECTING
        return ConnectionState.OPEN

    @property
    def is_sendable(self) -> bool:
        return self.state == ConnectionState.OPEN

    async def send_text(self, text: str) -> None:
        """Send a serialized message to the client."""
        try:
            await self.websocket.send_text(text)
            self.messages_sent += 1
        except Exception as e:
            logger.error(
                "Failed to send WebSocket message",
                connection_id=str(self.connection_id),
                error=str(e),
            )
            raise


class ConnectionRegistry:
    """
    The set of live client connections.

    A connection is a member from ``add`` until ``remove``. Adding twice does
    not duplicate it and removing a non-member is a no-op.
    """

    def __init__(self) -> None:
        self._connections: set[ClientConnection] = set()
        self._total_connected = 0

        # Serializes membership changes
        self._lock = asyncio.Lock()

        logger.info("ConnectionRegistry initialized")

    @property
    def active_connection_count(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        return connection in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    async def add(self, connection: ClientConnection) -> None:
        async with self._lock:
            if connection in self._connections:
                return
            self._connections.add(connection)
            self._total_connected += 1

        logger.info(
            "WebSocket client connected",
            connection_id=str(connection.connection_id),
            active_connections=len(self._connections),
        )

    async def remove(self, connection: ClientConnection) -> None:
        async with self._lock:
            if connection not in self._connections:
                return
            self._connections.discard(connection)

        logger.info(
            "WebSocket client disconnected",
            connection_id=str(connection.connection_id),
            active_connections=len(self._connections),
        )

    def snapshot(self) -> list[ClientConnection]:
        """Current members, in no particular order."""
        return list(self._connections)

    async def for_each_live(
        self,
        fn: Callable[[ClientConnection], Awaitable[Any]],
    ) -> int:
        """
        Invoke ``fn`` once per connection live at call time.

        Connections added while the calls are in flight are not visited.
        A failure for one connection is logged and does not stop the others.

        Returns:
            Number of invocations that completed without raising
        """
        members = self.snapshot()
        if not members:
            return 0

        results = await asyncio.gather(
            *(fn(connection) for connection in members),
            return_exceptions=True,
        )

        succeeded = 0
        for connection, result in zip(members, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Connection callback failed",
                    connection_id=str(connection.connection_id),
                    error=str(result),
                )
            else:
                succeeded += 1

        return succeeded

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics."""
        return {
            "active_connections": len(self._connections),
            "total_connected": self._total_connected,
        }

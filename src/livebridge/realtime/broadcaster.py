"""
Audio Broadcaster

Fans each upstream audio payload out to every live client connection.
"""

import asyncio
from typing import Any

import structlog

from .connection import ClientConnection, ConnectionRegistry
from .protocol import AudioStreamEnvelope

logger = structlog.get_logger()


class AudioBroadcaster:
    """
    Sends upstream audio to all connected clients.

    The envelope is serialized once per broadcast and the same text goes to
    every recipient. Connections that are not open are skipped; their removal
    is left to the transport's close handling.

    Each send is bounded by ``send_timeout``. A connection whose send times
    out is marked closing, so a stalled client holds up at most one broadcast.
    """

    def __init__(self, registry: ConnectionRegistry, send_timeout: float = 5.0) -> None:
        self._registry = registry
        self._send_timeout = send_timeout

        self.broadcast_count = 0
        self.deliveries = 0
        self.skipped = 0
        self.timeouts = 0

    async def broadcast(self, payload: bytes | str) -> int:
        """
        Broadcast one audio payload.

        Returns:
            Number of connections the envelope was sent to
        """
        text = AudioStreamEnvelope.from_payload(payload).serialize()
        self.broadcast_count += 1

        notified = 0

        async def send(connection: ClientConnection) -> None:
            nonlocal notified
            if not connection.is_sendable:
                self.skipped += 1
                logger.debug(
                    "Skipping connection that is not open",
                    connection_id=str(connection.connection_id),
                    state=connection.state.value,
                )
                return
            try:
                await asyncio.wait_for(connection.send_text(text), self._send_timeout)
            except asyncio.TimeoutError:
                self.timeouts += 1
                connection.closing = True
                logger.warning(
                    "WebSocket send timed out, excluding connection from broadcasts",
                    connection_id=str(connection.connection_id),
                    timeout=self._send_timeout,
                )
                raise
            notified += 1

        await self._registry.for_each_live(send)

        self.deliveries += notified
        return notified

    def get_stats(self) -> dict[str, Any]:
        """Get broadcaster statistics."""
        return {
            "total_broadcasts": self.broadcast_count,
            "total_deliveries": self.deliveries,
            "skipped_not_open": self.skipped,
            "send_timeouts": self.timeouts,
        }

"""
Client Message Router

Turns each raw client message into an upstream session command.
"""

from typing import Protocol

import structlog

from .connection import ClientConnection
from .protocol import (
    MessageDecodeError,
    RealtimeAudioMessage,
    TextTurnMessage,
    UnknownMessage,
    decode_client_message,
)

logger = structlog.get_logger()


class UpstreamSession(Protocol):
    """The upstream operations the router needs."""

    async def submit_text_turn(self, text: str) -> None: ...

    async def submit_realtime_media(self, audio_data: str) -> None: ...


class MessageRouter:
    """Routes decoded client messages to the shared upstream session."""

    def __init__(self, session: UpstreamSession) -> None:
        self._session = session

        self.routed = 0
        self.dropped = 0
        self.ignored = 0

    async def route(self, connection: ClientConnection, raw: str | bytes) -> None:
        """
        Handle one raw message from ``connection``.

        Malformed messages are logged and dropped; unknown types are ignored.
        Nothing is sent back to the client.
        """
        connection.messages_received += 1

        try:
            message = decode_client_message(raw)
        except MessageDecodeError as e:
            self.dropped += 1
            logger.warning(
                "Error parsing WebSocket message",
                connection_id=str(connection.connection_id),
                error=str(e),
            )
            return

        match message:
            case TextTurnMessage(text=text):
                await self._session.submit_text_turn(text)
            case RealtimeAudioMessage(audio_data=audio_data):
                await self._session.submit_realtime_media(audio_data)
            case UnknownMessage(type=msg_type):
                self.ignored += 1
                logger.debug(
                    "Ignoring unknown message type",
                    connection_id=str(connection.connection_id),
                    type=msg_type,
                )
                return

        self.routed += 1

    def get_stats(self) -> dict[str, int]:
        return {
            "routed": self.routed,
            "dropped": self.dropped,
            "ignored": self.ignored,
        }

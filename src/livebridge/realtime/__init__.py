"""
LiveBridge Realtime Module

Connection registry, client message routing, the shared Gemini Live session
and audio fan-out.
"""

from .connection import ClientConnection, ConnectionRegistry, ConnectionState
from .broadcaster import AudioBroadcaster
from .router import MessageRouter
from .session import (
    LiveSession,
    SessionEventType,
    SessionState,
    SessionStateError,
    create_live_session,
)
from .protocol import (
    AudioStreamEnvelope,
    ClientMessage,
    MessageDecodeError,
    RealtimeAudioMessage,
    TextTurnMessage,
    UnknownMessage,
    decode_client_message,
)

__all__ = [
    # Connection management
    "ClientConnection",
    "ConnectionRegistry",
    "ConnectionState",
    # Broadcasting
    "AudioBroadcaster",
    # Routing
    "MessageRouter",
    # Upstream session
    "LiveSession",
    "SessionEventType",
    "SessionState",
    "SessionStateError",
    "create_live_session",
    # Protocol
    "AudioStreamEnvelope",
    "ClientMessage",
    "MessageDecodeError",
    "RealtimeAudioMessage",
    "TextTurnMessage",
    "UnknownMessage",
    "decode_client_message",
]

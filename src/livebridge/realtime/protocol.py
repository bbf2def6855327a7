"""
Realtime WebSocket Protocol

Defines the client message variants, the decode step that produces them,
and the broadcast envelope sent back to every client.
"""

import base64
import binascii
from enum import Enum
from typing import Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Realtime audio sent upstream is always 16 kHz mono PCM.
AUDIO_INPUT_MIME_TYPE = "audio/pcm;rate=16000"


class MessageDecodeError(ValueError):
    """Raised when a raw client message cannot be decoded."""


class ClientMessageType(str, Enum):
    """Client -> Server message types."""

    CONTENT_UPDATE_TEXT = "contentUpdateText"
    REALTIME_INPUT = "realtimeInput"


class ServerMessageType(str, Enum):
    """Server -> Client message types."""

    AUDIO_STREAM = "audioStream"


# ══════════════════════════════════════════════════════════════
# Client Message Variants
# ══════════════════════════════════════════════════════════════


class TextTurnMessage(BaseModel):
    """A complete text turn submitted by a client."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["contentUpdateText"] = "contentUpdateText"
    text: str


class RealtimeAudioMessage(BaseModel):
    """One chunk of base64 encoded PCM audio streamed by a client."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["realtimeInput"] = "realtimeInput"
    audio_data: str = Field(alias="audioData")

    @field_validator("audio_data")
    @classmethod
    def check_base64(cls, v: str) -> str:
        # Line-wrapped encoders (MIME style) are accepted; whitespace is dropped
        compact = "".join(v.split())
        try:
            base64.b64decode(compact, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"audioData is not valid base64: {e}") from e
        return compact


class UnknownMessage(BaseModel):
    """Any message whose type is missing or not recognized."""

    type: str | None = None


ClientMessage = TextTurnMessage | RealtimeAudioMessage | UnknownMessage

_MESSAGE_MODELS: dict[str, type[BaseModel]] = {
    ClientMessageType.CONTENT_UPDATE_TEXT.value: TextTurnMessage,
    ClientMessageType.REALTIME_INPUT.value: RealtimeAudioMessage,
}


def decode_client_message(raw: str | bytes) -> ClientMessage:
    """
    Decode one raw client message into a message variant.

    Unrecognized or missing ``type`` values decode to ``UnknownMessage``.

    Raises:
        MessageDecodeError: The payload is not JSON, not an object, or a
            recognized message is missing its fields.
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MessageDecodeError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MessageDecodeError("message must be a JSON object")

    msg_type = data.get("type")
    model = _MESSAGE_MODELS.get(msg_type) if isinstance(msg_type, str) else None
    if model is None:
        return UnknownMessage(type=msg_type if isinstance(msg_type, str) else None)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MessageDecodeError(f"invalid {msg_type} message: {e}") from e


# ══════════════════════════════════════════════════════════════
# Broadcast Envelope
# ══════════════════════════════════════════════════════════════


class AudioStreamEnvelope(BaseModel):
    """Envelope carrying one upstream audio payload to every client."""

    type: Literal["audioStream"] = "audioStream"
    data: str

    @classmethod
    def from_payload(cls, payload: bytes | str) -> "AudioStreamEnvelope":
        """Build an envelope, base64 encoding raw bytes."""
        if isinstance(payload, bytes):
            payload = base64.b64encode(payload).decode("ascii")
        return cls(data=payload)

    def serialize(self) -> str:
        return orjson.dumps(self.model_dump(mode="json")).decode()

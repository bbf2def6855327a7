"""
Gemini Live Session Adapter

Owns the single upstream Live API session shared by every client. Client
traffic goes up through ``submit_text_turn`` / ``submit_realtime_media``;
server traffic comes back through a receive loop that feeds lifecycle events
into an explicit state machine.
"""

import asyncio
import base64
import functools
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog
from google import genai
from google.genai import errors, types

from livebridge.config import Settings
from .protocol import AUDIO_INPUT_MIME_TYPE

logger = structlog.get_logger()

# WebSocket close codes for a deliberate shutdown (normal closure, going away)
NORMAL_CLOSE_CODES = frozenset({1000, 1001})

MediaCallback = Callable[[bytes], Awaitable[Any]]
SessionConnector = Callable[[], AbstractAsyncContextManager[Any]]


class SessionState(str, Enum):
    """Lifecycle of the upstream session."""

    UNINITIALIZED = "uninitialized"
    OPEN = "open"
    CLOSED = "closed"


class SessionEventType(str, Enum):
    """Inbound lifecycle events from the upstream service."""

    OPEN = "open"
    MESSAGE = "message"
    ERROR = "error"
    CLOSE = "close"


class SessionStateError(RuntimeError):
    """Raised on an event that is illegal in the current session state."""


# (current state, event) -> next state
_TRANSITIONS: dict[tuple[SessionState, SessionEventType], SessionState] = {
    (SessionState.UNINITIALIZED, SessionEventType.OPEN): SessionState.OPEN,
    (SessionState.OPEN, SessionEventType.MESSAGE): SessionState.OPEN,
    (SessionState.UNINITIALIZED, SessionEventType.ERROR): SessionState.UNINITIALIZED,
    (SessionState.OPEN, SessionEventType.ERROR): SessionState.OPEN,
    (SessionState.CLOSED, SessionEventType.ERROR): SessionState.CLOSED,
    (SessionState.UNINITIALIZED, SessionEventType.CLOSE): SessionState.CLOSED,
    (SessionState.OPEN, SessionEventType.CLOSE): SessionState.CLOSED,
}


def create_audio_blob(audio_data: str) -> types.Blob:
    """Wrap base64 client audio as a 16 kHz PCM blob."""
    return types.Blob(
        data=base64.b64decode(audio_data),
        mime_type=AUDIO_INPUT_MIME_TYPE,
    )


def extract_inline_media(message: types.LiveServerMessage) -> bytes | None:
    """
    Return the inline data of the first part of the current model turn.

    Any missing level (content, turn, parts, inline data) yields None.
    """
    content = message.server_content
    if not content or not content.model_turn:
        return None

    parts = content.model_turn.parts
    if not parts:
        return None

    inline_data = parts[0].inline_data
    if not inline_data or not inline_data.data:
        return None

    return inline_data.data


def build_live_config(settings: Settings) -> types.LiveConnectConfig:
    """Build the Live API connect configuration from settings."""
    tools = None
    if settings.enable_google_search:
        tools = [types.Tool(google_search=types.GoogleSearch())]

    return types.LiveConnectConfig(
        response_modalities=[types.Modality(m) for m in settings.response_modalities],
        speech_config=types.SpeechConfig(
            voice_config=types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(
                    voice_name=settings.voice_name,
                ),
            ),
        ),
        tools=tools,
    )


class LiveSession:
    """
    Adapter around one Gemini Live session.

    Features:
    - Explicit lifecycle state machine (uninitialized -> open -> closed)
    - Send failures reported through the ERROR event, never to the caller
    - Inline media from model turns forwarded to ``on_media``
    """

    def __init__(
        self,
        connector: SessionConnector,
        on_media: MediaCallback | None = None,
        log_server_messages: bool = False,
    ) -> None:
        self._connector = connector
        self._on_media = on_media
        self._log_server_messages = log_server_messages

        self._state = SessionState.UNINITIALIZED
        self._session: Any = None
        self._exit_stack: AsyncExitStack | None = None
        self._receive_task: asyncio.Task | None = None

        self._handlers: dict[SessionEventType, Callable[[Any], Awaitable[None]]] = {
            SessionEventType.OPEN: self._on_open,
            SessionEventType.MESSAGE: self._on_message,
            SessionEventType.ERROR: self._on_error,
            SessionEventType.CLOSE: self._on_close,
        }

        # Stats
        self.messages_received = 0
        self.media_payloads = 0
        self.errors = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == SessionState.OPEN

    def set_media_callback(self, on_media: MediaCallback) -> None:
        self._on_media = on_media

    # ──────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Open the upstream session and start receiving."""
        if self._state != SessionState.UNINITIALIZED:
            raise SessionStateError(f"Cannot start a session that is {self._state.value}")

        exit_stack = AsyncExitStack()
        try:
            self._session = await exit_stack.enter_async_context(self._connector())
        except Exception as e:
            await self.handle_event(SessionEventType.ERROR, e)
            await self.handle_event(SessionEventType.CLOSE, e)
            raise

        self._exit_stack = exit_stack
        await self.handle_event(SessionEventType.OPEN)
        self._receive_task = asyncio.create_task(self._receive_loop())

    async def stop(self) -> None:
        """Stop receiving and close the upstream session."""
        if self._receive_task:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None

        if self._exit_stack:
            await self._exit_stack.aclose()
            self._exit_stack = None

        if self._state != SessionState.CLOSED:
            await self.handle_event(SessionEventType.CLOSE, "shutdown")

    async def _receive_loop(self) -> None:
        try:
            while True:
                # receive() ends after each completed turn
                async for message in self._session.receive():
                    await self.handle_event(SessionEventType.MESSAGE, message)
        except errors.APIError as e:
            # The SDK reports upstream websocket closes as APIError with the close code
            if e.code not in NORMAL_CLOSE_CODES:
                await self.handle_event(SessionEventType.ERROR, e)
            await self.handle_event(SessionEventType.CLOSE, e)
        except Exception as e:
            await self.handle_event(SessionEventType.ERROR, e)
            await self.handle_event(SessionEventType.CLOSE, e)

    # ──────────────────────────────────────────────────────────
    # Event dispatch
    # ──────────────────────────────────────────────────────────

    async def handle_event(self, event: SessionEventType, payload: Any = None) -> None:
        """
        Apply one inbound lifecycle event.

        Raises:
            SessionStateError: The event is not legal in the current state.
        """
        next_state = _TRANSITIONS.get((self._state, event))
        if next_state is None:
            raise SessionStateError(
                f"Illegal session event {event.value!r} in state {self._state.value!r}"
            )

        self._state = next_state
        await self._handlers[event](payload)

    async def _on_open(self, _: Any) -> None:
        logger.info("Live session opened")

    async def _on_message(self, message: types.LiveServerMessage) -> None:
        self.messages_received += 1

        if self._log_server_messages:
            logger.debug(
                "Received message from the server",
                message=message.model_dump_json(exclude_none=True),
            )

        media = extract_inline_media(message)
        if media is None:
            return

        self.media_payloads += 1
        if self._on_media:
            await self._on_media(media)

    async def _on_error(self, error: Any) -> None:
        self.errors += 1
        logger.error("Live session error", error=str(error))

    async def _on_close(self, info: Any) -> None:
        logger.warning("Live session closed", info=str(info) if info is not None else None)

    # ──────────────────────────────────────────────────────────
    # Upstream sends
    # ──────────────────────────────────────────────────────────

    async def submit_text_turn(self, text: str) -> None:
        """Send a complete user turn of text."""
        if not self.is_open:
            logger.warning("Live session not open, dropping text turn", state=self._state.value)
            return

        try:
            await self._session.send_client_content(
                turns=types.Content(role="user", parts=[types.Part(text=text)]),
                turn_complete=True,
            )
        except Exception as e:
            await self.handle_event(SessionEventType.ERROR, e)

    async def submit_realtime_media(self, audio_data: str) -> None:
        """Stream one chunk of base64 PCM audio."""
        if not self.is_open:
            logger.warning("Live session not open, dropping audio chunk", state=self._state.value)
            return

        try:
            await self._session.send_realtime_input(audio=create_audio_blob(audio_data))
        except Exception as e:
            await self.handle_event(SessionEventType.ERROR, e)

    def get_stats(self) -> dict[str, Any]:
        """Get session statistics."""
        return {
            "state": self._state.value,
            "messages_received": self.messages_received,
            "media_payloads": self.media_payloads,
            "errors": self.errors,
        }


def create_live_session(
    settings: Settings,
    on_media: MediaCallback | None = None,
) -> LiveSession:
    """Create an unstarted LiveSession for the configured model."""
    if settings.google_use_vertexai:
        client = genai.Client(
            vertexai=True,
            project=settings.google_cloud_project,
            location=settings.google_cloud_location,
        )
    else:
        client = genai.Client(api_key=settings.google_api_key)

    connector = functools.partial(
        client.aio.live.connect,
        model=settings.live_model,
        config=build_live_config(settings),
    )

    logger.info(
        "Live session configured",
        model=settings.live_model,
        voice=settings.voice_name,
        modalities=settings.response_modalities,
        google_search=settings.enable_google_search,
    )

    return LiveSession(
        connector,
        on_media=on_media,
        log_server_messages=settings.log_server_messages,
    )

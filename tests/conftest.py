"""
Pytest Configuration and Fixtures

Shared fixtures for unit tests.
"""

import asyncio
import base64
from contextlib import asynccontextmanager
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.websockets import WebSocketState
from google.genai import errors, types

from livebridge.config import Settings
from livebridge.realtime import ClientConnection, LiveSession


# ══════════════════════════════════════════════════════════════
# Settings Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def test_settings() -> Settings:
    """Test settings that never reach a real Google endpoint."""
    return Settings(
        app_env="development",
        debug=True,
        google_api_key="test-key",
        live_model="gemini-live-test",
        voice_name="Zephyr",
        log_server_messages=False,
    )


# ══════════════════════════════════════════════════════════════
# Upstream Fakes
# ══════════════════════════════════════════════════════════════


def audio_message(data: bytes, turn_complete: bool = False) -> types.LiveServerMessage:
    """A server message whose model turn carries inline audio."""
    return types.LiveServerMessage(
        server_content=types.LiveServerContent(
            model_turn=types.Content(
                role="model",
                parts=[
                    types.Part(
                        inline_data=types.Blob(data=data, mime_type="audio/pcm;rate=24000"),
                    )
                ],
            ),
            turn_complete=turn_complete or None,
        )
    )


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def upstream_closed(code: int = 1000, reason: str = "") -> errors.APIError:
    """The error the SDK raises from ``receive`` when the Live websocket closes."""
    return errors.APIError(code, reason)


class FakeLiveApiSession:
    """
    Stands in for ``google.genai.live.AsyncSession``.

    Messages pushed with ``push`` are yielded by ``receive``; pushing an
    exception makes ``receive`` raise it.
    """

    def __init__(self) -> None:
        self.send_client_content = AsyncMock()
        self.send_realtime_input = AsyncMock()
        self._queue: asyncio.Queue = asyncio.Queue()

    def push(self, item: Any) -> None:
        self._queue.put_nowait(item)

    async def receive(self):
        while True:
            item = await self._queue.get()
            if isinstance(item, BaseException):
                raise item
            yield item
            if item.server_content and item.server_content.turn_complete:
                return


@pytest.fixture
def fake_api_session() -> FakeLiveApiSession:
    return FakeLiveApiSession()


@pytest.fixture
def fake_connector(fake_api_session) -> Callable:
    """Connector yielding the fake API session, recording open/close."""
    state = {"opened": 0, "closed": 0}

    @asynccontextmanager
    async def connect():
        state["opened"] += 1
        try:
            yield fake_api_session
        finally:
            state["closed"] += 1

    connect.state = state
    return connect


@pytest.fixture
def live_session(fake_connector) -> LiveSession:
    """An unstarted LiveSession wired to the fake API session."""
    return LiveSession(fake_connector)


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


# ══════════════════════════════════════════════════════════════
# Connection Fixtures
# ══════════════════════════════════════════════════════════════


def make_websocket(
    client_state: WebSocketState = WebSocketState.CONNECTED,
    application_state: WebSocketState = WebSocketState.CONNECTED,
) -> MagicMock:
    ws = MagicMock()
    ws.client_state = client_state
    ws.application_state = application_state
    ws.accept = AsyncMock()
    ws.close = AsyncMock()
    ws.receive = AsyncMock()
    ws.send_text = AsyncMock()
    return ws


@pytest.fixture
def mock_websocket() -> MagicMock:
    """Create a mock WebSocket in the connected state."""
    return make_websocket()


@pytest.fixture
def make_connection() -> Callable[..., ClientConnection]:
    """Factory for connections over mock WebSockets."""

    def factory(**ws_kwargs) -> ClientConnection:
        return ClientConnection(websocket=make_websocket(**ws_kwargs))

    return factory


# ══════════════════════════════════════════════════════════════
# Helper Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def make_audio_message() -> Callable[..., types.LiveServerMessage]:
    return audio_message


@pytest.fixture
def waiter() -> Callable:
    return wait_until


@pytest.fixture
def make_upstream_close() -> Callable[..., errors.APIError]:
    return upstream_closed

"""
Realtime WebSocket Routes

Accepts client WebSocket connections, feeds their messages to the upstream
session and keeps the connection registry in step with the transport.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.requests import HTTPConnection

from livebridge.realtime import (
    AudioBroadcaster,
    ClientConnection,
    ConnectionRegistry,
    LiveSession,
    MessageRouter,
)

logger = structlog.get_logger()

router = APIRouter()


# ══════════════════════════════════════════════════════════════
# Dependencies
# ══════════════════════════════════════════════════════════════


def get_connection_registry(conn: HTTPConnection) -> ConnectionRegistry:
    return conn.app.state.registry


def get_message_router(conn: HTTPConnection) -> MessageRouter:
    return conn.app.state.message_router


# ══════════════════════════════════════════════════════════════
# WebSocket Endpoint
# ══════════════════════════════════════════════════════════════


@router.websocket("/")
async def live_websocket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_connection_registry),
    message_router: MessageRouter = Depends(get_message_router),
):
    """
    Client WebSocket endpoint.

    Protocol:
    1. Client connects to ws://<host>:<port>/
    2. Client sends contentUpdateText / realtimeInput messages
    3. Server pushes audioStream messages from the shared Live session
    """
    await websocket.accept()

    connection = ClientConnection(websocket=websocket)
    await registry.add(connection)

    try:
        while True:
            raw_data = await websocket.receive()

            if raw_data["type"] == "websocket.disconnect":
                break

            if raw_data.get("text") is not None:
                data = raw_data["text"]
            elif raw_data.get("bytes") is not None:
                data = raw_data["bytes"]
            else:
                continue

            await message_router.route(connection, data)

    except WebSocketDisconnect:
        pass

    except Exception as e:
        logger.error(
            "WebSocket error",
            connection_id=str(connection.connection_id),
            error=str(e),
        )

    finally:
        connection.closing = True
        await registry.remove(connection)


# ══════════════════════════════════════════════════════════════
# HTTP Endpoints for Connection Info
# ══════════════════════════════════════════════════════════════


@router.get("/connections")
async def get_connections(request: Request) -> dict[str, Any]:
    """Get registry, broadcaster, router and session statistics."""
    registry: ConnectionRegistry = request.app.state.registry
    broadcaster: AudioBroadcaster = request.app.state.broadcaster
    message_router: MessageRouter = request.app.state.message_router
    session: LiveSession = request.app.state.session

    return {
        "connections": registry.get_stats(),
        "broadcasts": broadcaster.get_stats(),
        "routing": message_router.get_stats(),
        "session": session.get_stats(),
    }

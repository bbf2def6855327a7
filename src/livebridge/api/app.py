"""
LiveBridge FastAPI Application

Main application factory and configuration.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from livebridge import __version__
from livebridge.config import Settings, settings
from livebridge.realtime import (
    AudioBroadcaster,
    ConnectionRegistry,
    LiveSession,
    MessageRouter,
    create_live_session,
)

from .routes import health, pages, realtime

logger = structlog.get_logger()

SessionFactory = Callable[[Settings], LiveSession]


def _default_session_factory(app_settings: Settings) -> LiveSession:
    return create_live_session(app_settings)


# ══════════════════════════════════════════════════════════════
# Lifespan Management
# ══════════════════════════════════════════════════════════════


def _make_lifespan(session_factory: SessionFactory):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Open the shared upstream session before serving clients."""
        logger.info(
            "Starting LiveBridge",
            version=__version__,
            environment=settings.app_env,
        )

        registry = ConnectionRegistry()
        broadcaster = AudioBroadcaster(registry, send_timeout=settings.send_timeout)

        session = session_factory(settings)
        session.set_media_callback(broadcaster.broadcast)
        await session.start()

        app.state.registry = registry
        app.state.broadcaster = broadcaster
        app.state.session = session
        app.state.message_router = MessageRouter(session)

        logger.info(f"Server running on http://localhost:{settings.port}")

        yield

        logger.info("Shutting down LiveBridge")
        await session.stop()
        logger.info("LiveBridge shutdown complete")

    return lifespan


# ══════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════


def create_app(session_factory: SessionFactory | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=f"{settings.app_name} API",
        description="One Gemini Live session, many WebSocket listeners",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=_make_lifespan(session_factory or _default_session_factory),
    )

    # ──────────────────────────────────────────────────────────
    # Middleware
    # ──────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing."""
        start = time.perf_counter()

        response = await call_next(request)

        duration = (time.perf_counter() - start) * 1000
        logger.info(
            "Request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration, 2),
        )

        return response

    # ──────────────────────────────────────────────────────────
    # Routes
    # ──────────────────────────────────────────────────────────

    app.include_router(health.router, tags=["Health"])
    app.include_router(pages.router, tags=["Pages"])
    app.include_router(realtime.router, tags=["Realtime"])

    return app

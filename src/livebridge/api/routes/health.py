"""Health check endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse

from livebridge import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {
        "status": "healthy",
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Ready once the upstream Live session is open."""
    session = getattr(request.app.state, "session", None)
    if session is None or not session.is_open:
        return ORJSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "Live session not open"},
        )

    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness probe."""
    return {"status": "alive"}

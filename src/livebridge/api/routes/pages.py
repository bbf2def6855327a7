"""Static client page."""

from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from livebridge.config import settings

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the browser client page."""
    path = Path(settings.index_html_path)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Client page not found")

    return HTMLResponse(path.read_text(encoding="utf-8"))

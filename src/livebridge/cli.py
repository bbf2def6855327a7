"""
LiveBridge CLI

Command-line interface for running and inspecting the bridge.
"""

import click
import structlog

from livebridge import __version__
from livebridge.config import settings
from livebridge.logging_setup import configure_logging

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
# CLI Group
# ══════════════════════════════════════════════════════════════


@click.group()
@click.version_option(version=__version__, prog_name="livebridge")
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """LiveBridge - one Gemini Live session, many WebSocket listeners."""
    configure_logging("DEBUG" if debug else settings.log_level)


# ══════════════════════════════════════════════════════════════
# Server Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
@click.option("--host", default=None, help="Host to bind to (default: settings.host)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: settings.port)")
@click.option("--reload/--no-reload", default=False, help="Enable auto-reload")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the bridge: client page, WebSocket endpoint and Live session.

    A single worker process is used since every client shares one
    upstream session.
    """
    import uvicorn

    host = host or settings.host
    port = port or settings.port

    click.echo(f"Starting LiveBridge on http://{host}:{port}")
    click.echo(f"  - ws://{host}:{port}/")

    uvicorn.run(
        "livebridge.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        workers=1,
        factory=True,
    )


# ══════════════════════════════════════════════════════════════
# Config Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
def config() -> None:
    """Show current configuration."""
    click.echo("LiveBridge Configuration\n")

    config_items = [
        ("Environment", settings.app_env),
        ("Debug", str(settings.debug)),
        ("Log level", settings.log_level),
        ("Bind", f"{settings.host}:{settings.port}"),
        ("Client page", settings.index_html_path),
        ("API key", settings.masked_api_key),
        ("Vertex AI", str(settings.google_use_vertexai)),
        ("Model", settings.live_model),
        ("Voice", settings.voice_name),
        ("Modalities", ", ".join(settings.response_modalities)),
        ("Google Search", str(settings.enable_google_search)),
    ]

    for name, value in config_items:
        click.echo(f"  {name:15} {value}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

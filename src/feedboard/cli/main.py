"""Feedboard CLI — run the server, check on a running one.

Usage:
    feedboard serve                       # Listen on FEEDBOARD_HOST:FEEDBOARD_PORT
    feedboard serve --port 9000 --ping-interval 10
    feedboard status                      # Sessions, feedback, dropped messages
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Optional

import click
import httpx
from pydantic import ValidationError

from feedboard import __version__
from feedboard.config import Settings, settings

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def _api_url() -> str:
    default = f"http://localhost:{settings.port}"
    return os.environ.get("FEEDBOARD_API_URL", default).rstrip("/")


async def _fetch_health(base_url: str) -> dict:
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as c:
        r = await c.get("/api/v1/health")
        r.raise_for_status()
        return r.json()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="feedboard")
def main():
    """Feedboard — real-time happy/sad feedback board server."""


# ---------------------------------------------------------------------------
# feedboard serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Listen address (default: FEEDBOARD_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Listen port (default: FEEDBOARD_PORT)")
@click.option("--ping-interval", type=float, default=None,
              help="Seconds between liveness sweeps (default: FEEDBOARD_PING_INTERVAL)")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
def serve(host: Optional[str], port: Optional[int],
          ping_interval: Optional[float], log_level: Optional[str]):
    """Run the feedback board server."""
    import uvicorn

    from feedboard.main import create_app

    overrides = {
        k: v for k, v in {
            "host": host,
            "port": port,
            "ping_interval": ping_interval,
            "log_level": log_level,
        }.items() if v is not None
    }
    try:
        cfg = Settings(**{**settings.model_dump(), **overrides})
    except ValidationError as e:
        raise click.UsageError(str(e)) from e

    click.echo(f"Feedboard {__version__} listening on {cfg.host}:{cfg.port}")
    # Protocol-level keepalive: a pong must arrive before the next ping
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port,
                log_level=cfg.log_level.lower(), ws="websockets",
                ws_ping_interval=cfg.ping_interval,
                ws_ping_timeout=cfg.ping_interval)


# ---------------------------------------------------------------------------
# feedboard status
# ---------------------------------------------------------------------------


@main.command()
@click.option("--url", default=None, help="Server base URL (default: FEEDBOARD_API_URL)")
def status(url: Optional[str]):
    """Show sessions, stored feedback and protocol counters of a running server."""
    base_url = (url or _api_url()).rstrip("/")
    try:
        data = asyncio.run(_fetch_health(base_url))
    except httpx.HTTPError as e:
        click.secho(f"Cannot reach {base_url}: {e}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"Feedboard {data['version']} — {data['status']}", bold=True)
    click.echo(f"  Sessions:      {data['sessions']}")
    click.echo(f"  Participants:  {data['participants']}")
    click.echo(f"  Feedback:      {data['feedback']}")

    stats = data.get("stats", {})
    if stats:
        click.echo("")
        click.secho("Counters", bold=True)
        click.echo("-" * 32)
        for key, value in stats.items():
            click.echo(f"  {key.ljust(24)}{value}")

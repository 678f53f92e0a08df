"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its own BoardContext on app.state. Lifespan manages the
liveness sweep: started at startup, stopped and cancelled at shutdown.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedboard import __version__
from feedboard.api import api_router
from feedboard.config import Settings, settings as default_settings
from feedboard.context import BoardContext

logger = structlog.get_logger()


def configure_logging(level: str) -> None:
    """Filter structlog output below level, keep contextvars in every line."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown. State is memory-only, so shutdown has nothing to flush.
    """
    cfg: Settings = app.state.settings
    ctx: BoardContext = app.state.board

    configure_logging(cfg.log_level)
    logger.info(
        "feedboard.starting",
        version=__version__,
        environment=cfg.environment,
        port=cfg.port,
        ping_interval=cfg.ping_interval,
    )

    sweep_task = asyncio.create_task(ctx.sessions.run_loop())

    yield

    logger.info("feedboard.shutdown")
    ctx.sessions.stop()
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = settings or default_settings

    app = FastAPI(
        title="Feedboard",
        description="Real-time happy/sad feedback board",
        version=__version__,
        debug=cfg.debug,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.board = BoardContext.from_settings(cfg)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    from feedboard.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: feedboard.main:app)
app = create_app()

"""Planning Poker room service - FastAPI application."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from pokerroom import __version__
from pokerroom.providers import DIContainer
from pokerroom.transport.http.api import router
from pokerroom.transport.http.health import router as health_router
from pokerroom.transport.http.websocket import router as ws_router
from config import CLEANUP_INTERVAL_SECONDS, CORS_ORIGINS

logger = logging.getLogger(__name__)


async def sweep_inactive_rooms(container: DIContainer, interval_seconds: int) -> None:
    """Run the inactivity sweep forever, once per interval."""
    while True:
        result = await container.cleanup_rooms.execute()
        if not result.success:
            logger.warning("Inactive room sweep failed: %s", result.error)
        await asyncio.sleep(interval_seconds)


def create_app(container: Optional[DIContainer] = None, run_sweeper: bool = True) -> FastAPI:
    """Build the application. A prebuilt container is used as is (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown."""
        logger.info("Room service starting...")
        app.state.container = container or await DIContainer.create()
        sweeper = None
        if run_sweeper:
            sweeper = asyncio.create_task(
                sweep_inactive_rooms(app.state.container, CLEANUP_INTERVAL_SECONDS)
            )
        yield
        logger.info("Room service shutting down...")
        if sweeper is not None:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
        await app.state.container.cleanup()

    app = FastAPI(
        title="Planning Poker Rooms",
        description="Real-time planning poker rooms: voting, statistics and history",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/health", tags=["health"])
    app.include_router(router, prefix="/api/v1", tags=["rooms"])
    app.include_router(ws_router, tags=["realtime"])
    return app


app = create_app()

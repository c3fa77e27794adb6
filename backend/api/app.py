"""
FastAPI application factory for the Live Board API service.

Creates the app with:
- REST routes (board, match timeline, standings)
- Middleware stack
- Health check endpoints
- Lifespan management (feed provider + live board start/stop)
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI

from shared.config import get_settings
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.board import LiveBoard
from api.dependencies import get_board, init_dependencies
from api.middleware import setup_middleware
from api.routes.board import router as board_router
from ingest.providers.http_stream import HttpFeedProvider

logger = get_logger(__name__)


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without a live feed."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Starts the feed provider and the live board on startup; tears both down
    on shutdown so no late feed delivery outlives the app.
    """
    settings = get_settings()
    setup_logging("api")
    start_metrics_server(settings.metrics_port)

    provider = HttpFeedProvider(settings)
    await provider.start()
    board = LiveBoard(provider)
    init_dependencies(board, provider)
    await board.start()

    logger.info(
        "api_service_started",
        host=settings.api_host,
        port=settings.api_port,
        feed=settings.feed_base_url,
    )

    try:
        yield
    finally:
        try:
            await board.stop()
        finally:
            await provider.close()
            logger.info("api_service_stopped")


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing without a feed."""
    app = FastAPI(
        title="Live Board API",
        description="Live football scores aggregated from a streaming feed",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Middleware
    setup_middleware(app)

    # REST routes
    app.include_router(board_router)

    # Health check
    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    @app.get("/ready", tags=["system"])
    async def readiness() -> dict[str, Any]:
        """Readiness probe: ok once the push channel reports connected."""
        board = get_board()
        return {
            "status": "ok" if board.view().connected else "degraded",
            "connection_state": board.connection_state.value,
            "matches": len(board.matches),
        }

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "api.app:create_app",
        factory=True,
        host=_settings.api_host,
        port=_settings.api_port,
        log_level=_settings.log_level.lower(),
    )

"""
FastAPI application for pugstats.

Thin JSON surface over PlayerService:
- msgspec JSON serialization
- PlayerService built in the lifespan and shared via app.state
- Player list rebuild scheduled on startup
- Consistent error envelopes for domain errors
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import msgspec
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from ..core.config import Settings, get_settings
from ..core.exceptions import PugStatsError
from ..services.players import PlayerService, create_player_service
from .errors import error_content, pugstats_error_handler
from .routers import players

logger = logging.getLogger(__name__)


class MSGSpecResponse(Response):
    """Custom response class using msgspec for fast JSON serialization."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        if content is None:
            return b""
        return msgspec.json.encode(content)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[PlayerService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to get_settings())
        service: Pre-built PlayerService; built from settings at startup if omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: build the PlayerService and schedule the first list build.
        Shutdown: cancel pending rebuilds, close cache and database.
        """
        logger.info(f"Starting {settings.app_name}...")
        player_service = service or await create_player_service(settings)
        app.state.player_service = player_service
        player_service.warm()

        yield

        logger.info(f"Shutting down {settings.app_name}...")
        try:
            await player_service.close()
        except Exception as e:
            logger.warning(f"Error closing player service: {e}")

    app = FastAPI(
        title=settings.app_name,
        description="Cached player statistics for pick-up game matchmaking",
        version=settings.app_version,
        default_response_class=MSGSpecResponse,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def add_process_time(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        return response

    app.add_exception_handler(PugStatsError, pugstats_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions with consistent format."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        show_detail = settings.debug and settings.environment != "production"
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_content(
                "INTERNAL_ERROR",
                "An internal error occurred",
                str(exc) if show_detail else None,
            ),
        )

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(tz=timezone.utc).isoformat()}

    @app.get("/health/cache", tags=["health"])
    async def health_check_cache(request: Request):
        """Cache counters plus the player list rebuild state."""
        player_service: PlayerService = request.app.state.player_service
        debouncer = player_service.lists.debouncer
        return {
            "status": "healthy",
            "cache": await player_service.cache.get_stats(),
            "player_lists": {"state": debouncer.state.value, "rebuilds": debouncer.runs},
            "players_locked": len(player_service.coordinator.locks),
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
        }

    app.include_router(players.router, prefix=f"{settings.api_prefix}/players", tags=["players"])

    return app

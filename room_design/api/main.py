"""
FastAPI application for the room design service.

This module builds the application serving the game API and owns the
process-wide resources: the key-value store, the theme-change notifier and
the background theme rotation worker.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from room_design.api.endpoints import designs, game
from room_design.config.settings import settings
from room_design.core.exceptions import RoomDesignError
from room_design.core.rotation_scheduler import ThemeRotationScheduler
from room_design.core.theme_lifecycle import ThemeLifecycle
from room_design.core.theme_notifier import ThemeNotifier
from room_design.storage import create_store
from room_design.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Opens the store, makes sure a theme is current and starts the rotation
    worker on startup; stops the worker and releases clients on shutdown.
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} with '{settings.STORE_BACKEND}' store")

    store = create_store(settings.STORE_BACKEND)
    notifier = ThemeNotifier(
        webhook_url=settings.THEME_NOTIFICATION_WEBHOOK_URL,
        api_key=settings.THEME_NOTIFICATION_API_KEY,
    )
    app.state.store = store
    app.state.notifier = notifier

    lifecycle = ThemeLifecycle(store, notifier=notifier)
    scheduler = ThemeRotationScheduler(lifecycle)
    app.state.scheduler = scheduler

    if settings.THEME_ROTATION_ENABLED:
        scheduler.start()
    else:
        logger.info("Theme rotation disabled - skipping background task creation")
        try:
            await lifecycle.rotate()
        except RoomDesignError as e:
            logger.error(f"Failed to initialize the current theme: {e}", exc_info=True)

    yield

    logger.info("Shutting down application")
    await scheduler.stop()
    await notifier.close()
    await store.close()


async def room_design_error_handler(request: Request, exc: RoomDesignError) -> JSONResponse:
    """Render domain errors with their status code and a player-facing message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({type(exc).__name__}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "code": type(exc).__name__, "message": exc.message},
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""Room design game API.

        This API provides endpoints for:
        - Creating and editing room designs
        - Submitting a design to the current theme
        - Browsing the gallery and voting on submissions
        - Theme leaderboards and the furniture asset catalog""",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_tags=[
            {"name": "game", "description": "Themes, submissions, gallery, voting and leaderboard"},
            {"name": "designs", "description": "Design editing"},
            {"name": "health", "description": "Health check and monitoring"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.DEBUG else ["*"],
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS if not settings.DEBUG else ["*"],
    )

    app.add_exception_handler(RoomDesignError, room_design_error_handler)

    app.include_router(game.router, prefix="/api", tags=["game"])
    app.include_router(designs.router, prefix="/api/design", tags=["designs"])

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            dict: Service identity, store reachability and rotation worker state.
        """
        store = getattr(request.app.state, "store", None)
        scheduler = getattr(request.app.state, "scheduler", None)
        store_ok = await store.ping() if store is not None else False
        return {
            "status": "healthy" if store_ok else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "store_backend": settings.STORE_BACKEND,
            "store": "ok" if store_ok else "unavailable",
            "theme_rotation": "running" if scheduler is not None and scheduler.running else "stopped",
        }

    return app


# Create the application instance
app = create_app()

"""
Call Signaling Relay - Main Application

This is the entry point for the FastAPI application.
It handles:
- WebSocket connections for call signaling
- Status endpoints
- Background expiry of unanswered calls
"""
from contextlib import asynccontextmanager, suppress
import asyncio
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callrelay import __version__
from callrelay.api import router as api_router
from callrelay.api.websocket import router as ws_router
from callrelay.config.logging import setup_logging
from callrelay.config.settings import Settings, settings as default_settings
from callrelay.services.call import CallSessionTable
from callrelay.services.connection import ConnectionRegistry
from callrelay.services.metrics import start_metrics_server
from callrelay.services.session import SignalingRouter

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build an app with its own registry, call table and router."""
    app_settings = app_settings or default_settings
    setup_logging(app_settings.LOG_LEVEL)

    registry = ConnectionRegistry()
    calls = CallSessionTable(history_size=app_settings.REMOVED_CALL_HISTORY)
    signaling = SignalingRouter(registry, calls, app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Handles startup and shutdown events using the modern FastAPI pattern.
        """
        # === STARTUP ===
        logger.info(f"🚀 WebRTC Signaling Server starting on port {app_settings.API_PORT}")

        if app_settings.METRICS_ENABLED:
            start_metrics_server(app_settings.METRICS_PORT)

        sweeper = None
        if app_settings.RING_TIMEOUT_SEC > 0:
            sweeper = asyncio.create_task(signaling.ring_sweeper())
            logger.info(f"✅ Ring timeout sweeper started ({app_settings.RING_TIMEOUT_SEC}s)")

        yield  # Application runs here

        # === SHUTDOWN ===
        logger.info("🛑 Shutting down...")
        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
        logger.info("Server closed")

    app = FastAPI(
        title="Call Signaling Relay",
        description="WebRTC call signaling between pairs of users",
        version=__version__,
        lifespan=lifespan
    )

    app.state.settings = app_settings
    app.state.registry = registry
    app.state.calls = calls
    app.state.signaling = signaling

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.include_router(ws_router)

    return app


app = create_app()

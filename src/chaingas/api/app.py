"""FastAPI application factory for the published-state API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from chaingas.api.routes import api, ws
from chaingas.api.routes.ws import StateHub


def create_api_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the published-state API application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to start and stop ingestion with the server.

    Returns:
        Configured FastAPI application with the WebSocket hub and routes.
        main.py populates app.state.store, .networks, .simulator, and
        .update_interval before serving.
    """
    app = FastAPI(
        title="Cross-Chain Gas Tracker",
        lifespan=lifespan,
    )

    app.state.hub = StateHub()

    app.include_router(api.router, prefix="/api")
    app.include_router(ws.router)

    return app

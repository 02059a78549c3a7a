"""FastAPI dashboard application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from cryptosignal.dashboard.routes import api


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        FastAPI application with the JSON API mounted under ``/api``.
        Route handlers expect ``app.state.orchestrator`` to be set.
    """
    app = FastAPI(
        title="Crypto Signal Dashboard",
        lifespan=lifespan,
    )
    app.include_router(api.router, prefix="/api")
    return app

"""
FastAPI application entrypoint for the OAuth consent listener.
"""

from __future__ import annotations

from fastapi import FastAPI

from mailgate.api.routes import router as auth_router
from mailgate.core.config import get_settings
from mailgate.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="mailgate OAuth listener",
        version="0.1.0",
        description="Browser-facing OAuth consent and callback endpoints.",
    )
    app.include_router(auth_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]

"""
Fall Guardian control API application

FastAPI application factory.
"""

import logging

from fastapi import FastAPI

from src.core.guardian import Guardian
from src.web.routes.api import router as api_router


logger = logging.getLogger(__name__)


def create_app(guardian: Guardian) -> FastAPI:
    """Build the FastAPI application around a running Guardian.

    Args:
        guardian: wired confirmation engine served by the routes

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Fall Guardian",
        description="Fall confirmation and emergency escalation control API",
        version="0.1.0",
    )
    app.state.guardian = guardian

    app.include_router(api_router)

    logger.info("Fall Guardian API created")

    return app


__all__ = ["create_app"]

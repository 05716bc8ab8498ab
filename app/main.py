"""
FastAPI application entrypoint for the Mercado Libre post-sale bridge.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.api.routes import router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.dependencies import get_attachment_resolver, get_fulfillment_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the fulfillment pipeline before serving so a bad attachment map fails startup."""
    resolver = get_attachment_resolver()
    missing = resolver.missing_files()
    logger.info("Attachment map loaded: %d items, %d files missing", len(resolver), len(missing))
    for item_id, path in sorted(missing.items()):
        logger.warning("Item %s is mapped to %s, which does not exist", item_id, path)
    get_fulfillment_pipeline()
    yield


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Mercado Libre Post-Sale Bridge",
        version="0.1.0",
        description="Delivers digital goods to buyers of paid orders via post-sale messages.",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":  # pragma: no cover - script entry point
    run()


__all__ = ["app", "create_app", "lifespan", "run"]

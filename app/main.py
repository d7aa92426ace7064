"""
Main application module.

This is the entry point of our FastAPI application.
It creates the app instance and sets up all configurations.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import logging

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import log_requests, setup_logging
from app.db.database import create_store
from app.db.store import DocumentStore
from app.services.upload_service import UploadService

# STEP 1: Set up logging before anything else
# This must happen first so all other modules can use logging
setup_logging(debug=settings.debug)

# STEP 2: Create a logger for this module
logger = logging.getLogger(__name__)


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Factory function that creates and configures our FastAPI application.

    Args:
        store: document store to serve from; built from the settings
            (STORE_BACKEND) when omitted. Tests pass a fresh MemoryStore.

    Returns:
        FastAPI: A configured FastAPI application instance
    """
    if store is None:
        store = create_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down, closing store")
        app.state.store.close()

    app = FastAPI(
        title="Real Estate Listings API",
        description="Properties, leads, appointments, messaging and contact submissions",
        version="1.0.0",
        # Interactive docs are hidden in production
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )
    app.state.store = store

    uploads = UploadService(settings.upload_dir, settings.max_file_size)
    uploads.ensure_folders()
    app.state.uploads = uploads

    # STEP: Cross-origin callers (local frontends plus FRONTEND_URL)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    register_exception_handlers(app)

    logger.info(f"FastAPI app created - environment: {settings.environment}, store: {store.backend}")

    # STEP: Register routers (add our endpoints to the app)
    from app.api import analytics, appointments, contact, health, leads, messages, properties, upload

    app.include_router(health.router)
    app.include_router(health.api_router)
    logger.info("Health endpoints registered at /health/* and /api/health")

    for module in (properties, leads, appointments, messages, contact, upload, analytics):
        app.include_router(module.router)
        logger.info(f"{module.__name__.rsplit('.', 1)[-1].capitalize()} endpoints registered at {module.router.prefix}/*")

    # Uploaded files are served as static content
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    return app


# STEP 3: Create the actual app instance
# This runs when the module is imported
app = create_app()

logger.info("Main application module loaded")

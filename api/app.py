"""FastAPI application for the gist editor's local server."""

import os
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from .observability import initialize_observability
from .routes import credential_router

# Initialize logger
logger = structlog.get_logger(__name__)

STATIC_DIR = Path(os.getenv("GISTEDITOR_STATIC_DIR", "static"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    initialize_observability()
    logger.info("api_started", static_dir=str(app.state.static_dir))

    yield

    logger.info("api_shutdown_complete")


def create_app(static_dir: Path | str | None = STATIC_DIR) -> FastAPI:
    """Build the application.

    The browser UI, if present in ``static_dir``, is served from ``/``.
    """
    app = FastAPI(
        title="Gist Editor",
        description="Local helper that hands the GitHub CLI token to the gist editor UI",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.static_dir = static_dir

    FastAPIInstrumentor.instrument_app(app)

    app.include_router(credential_router)

    # Mounted last so /credential takes precedence over static files
    if static_dir is not None and Path(static_dir).is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()

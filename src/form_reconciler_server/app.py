"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the form definitions once
  - CORS middleware
  - Global exception handlers (KeyError → 404, ValueError → 400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness checks

The ``cli()`` function is the ``form-reconciler-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from form_reconciler.store import FormStore

from form_reconciler_server.config import ServerSettings, load_settings
from form_reconciler_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from form_reconciler_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan - runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load form definitions into a ``FormStore`` and stash it on ``app.state``."""
    settings: ServerSettings = app.state.settings

    store = FormStore(forms_dir=settings.forms_dir)
    store.load()
    app.state.store = store
    logger.info("FormStore loaded successfully (%d forms)", len(store))

    yield


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Form Reconciler API Server",
        description="REST API for completing draft clinical forms",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health(request: Request) -> dict:
        """Readiness check - reports how many forms are loaded."""
        store = getattr(request.app.state, "store", None)
        if store is None:
            return {"status": "starting", "forms": 0}
        return {"status": "ok", "forms": len(store)}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn form_reconciler_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``form-reconciler-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "form_reconciler_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )

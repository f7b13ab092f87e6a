"""Route registration - mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from form_reconciler_server.routes.forms import router as forms_router
from form_reconciler_server.routes.reconcile import router as reconcile_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(forms_router, prefix=API_PREFIX)
    app.include_router(reconcile_router, prefix=API_PREFIX)

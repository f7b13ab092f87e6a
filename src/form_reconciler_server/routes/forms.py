"""Form endpoints - list bundled form definitions and reconcile against them.

Form definitions come from the ``forms/`` directory loaded at startup.
Unknown form ids raise ``KeyError`` in the store, which the global handler
maps to 404.
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from form_reconciler.models import FormDefinition, ReconcileContext, ResponseNode
from form_reconciler.reconciler import ReconciliationEngine
from form_reconciler.store import FormStore

from form_reconciler_server.dependencies import get_engine, get_store
from form_reconciler_server.routes.reconcile import ReconcileResponse, build_response

router = APIRouter(prefix="/forms", tags=["forms"])


class ReconcileFormRequest(BaseModel):
    """Body for POST /forms/{form_id}/reconcile."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    partial: List[ResponseNode] = Field(default_factory=list)
    context: ReconcileContext = Field(default_factory=ReconcileContext)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("")
def list_forms(store: FormStore = Depends(get_store)) -> list[dict]:
    """Return id, title and version of every loaded form."""
    return [
        {"id": form.id, "title": form.title, "version": form.version}
        for form in store.list_forms()
    ]


@router.get("/{form_id}", response_model_exclude_none=True)
def get_form(form_id: str, store: FormStore = Depends(get_store)) -> FormDefinition:
    """Return a full form definition."""
    return store.get(form_id)


@router.post("/{form_id}/reconcile", response_model_exclude_none=True)
def reconcile_form(
    form_id: str,
    body: ReconcileFormRequest,
    store: FormStore = Depends(get_store),
    engine: ReconciliationEngine = Depends(get_engine),
) -> ReconcileResponse:
    """Reconcile partial answers against a bundled form definition."""
    form = store.get(form_id)
    result = engine.reconcile(form.items, body.partial, body.context)
    return build_response(result, form.items)

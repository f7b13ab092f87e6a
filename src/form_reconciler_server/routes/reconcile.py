"""Reconciliation endpoints - inline schema and raw FHIR documents.

Both endpoints are stateless: the caller supplies the schema (or FHIR
Questionnaire), the partial answers and the context, and receives the
completed response.  Nothing is persisted.
"""

from typing import Any, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from form_reconciler.fhir import fill_missing_fields
from form_reconciler.models import (
    FieldDescriptor,
    FillStatistics,
    ReconcileContext,
    ReconcileResult,
    ResponseNode,
    ValueSource,
)
from form_reconciler.reconciler import ReconciliationEngine
from form_reconciler.validation import CompletenessReport, check_completeness

from form_reconciler_server.dependencies import get_engine

router = APIRouter(tags=["reconcile"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReconcileRequest(_CamelModel):
    """Body for POST /reconcile - the schema travels with the request."""

    definition: List[FieldDescriptor] = Field(alias="schema")
    partial: List[ResponseNode] = Field(default_factory=list)
    context: ReconcileContext = Field(default_factory=ReconcileContext)


class FhirReconcileRequest(_CamelModel):
    """Body for POST /fhir/reconcile."""

    questionnaire: Any = None
    questionnaire_response: Any = None
    context: ReconcileContext = Field(default_factory=ReconcileContext)


class ReconcileResponse(_CamelModel):
    """Completed answer tree plus statistics, provenance and completeness."""

    response: List[ResponseNode]
    statistics: FillStatistics
    provenance: dict[str, ValueSource]
    completeness: CompletenessReport


class FhirReconcileResponse(_CamelModel):
    questionnaire_response: Any = None
    statistics: FillStatistics


def build_response(result: ReconcileResult, schema: List[FieldDescriptor]) -> ReconcileResponse:
    """Convert an engine result into the HTTP response model."""
    return ReconcileResponse(
        response=result.response,
        statistics=result.statistics,
        provenance=result.provenance,
        completeness=check_completeness(schema, result.response),
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/reconcile", response_model_exclude_none=True)
def reconcile_inline(
    body: ReconcileRequest,
    engine: ReconciliationEngine = Depends(get_engine),
) -> ReconcileResponse:
    """Reconcile partial answers against a schema supplied in the body."""
    result = engine.reconcile(body.definition, body.partial, body.context)
    return build_response(result, body.definition)


@router.post("/fhir/reconcile", response_model_exclude_none=True)
def reconcile_fhir(
    body: FhirReconcileRequest,
    engine: ReconciliationEngine = Depends(get_engine),
) -> FhirReconcileResponse:
    """Fill a FHIR QuestionnaireResponse against its Questionnaire.

    Malformed documents are not an error: the response document comes back
    unchanged and the statistics carry a warning.
    """
    filled, stats = fill_missing_fields(
        body.questionnaire_response, body.questionnaire, body.context, engine=engine,
    )
    return FhirReconcileResponse(questionnaire_response=filled, statistics=stats)

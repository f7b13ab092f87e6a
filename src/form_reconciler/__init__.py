"""form_reconciler - completes partially-filled clinical forms.

Public API:
    ReconciliationEngine - walks a form schema and fills every unanswered leaf
    ValueSynthesizer     - maps (field, context) to a type-correct value
    PlaceholderGenerator - realistic, non-real demo values behind one RNG
    FormStore            - loads form definitions from ``forms/``

Models:
    FieldDescriptor   - one schema node (typed field, group or display)
    ResponseNode      - one node of the answer tree
    ReconcileContext  - real patient attributes + clinical context/urgency
    FillStatistics    - per-call counters
    ReconcileResult   - filled tree + statistics + provenance

FHIR helpers:
    questionnaire_from_fhir / response_from_fhir / response_to_fhir
    fill_missing_fields - reconcile raw FHIR documents in one call
"""

from form_reconciler.fhir import (
    fill_missing_fields,
    questionnaire_from_fhir,
    response_from_fhir,
    response_to_fhir,
)
from form_reconciler.models import (
    AnswerOption,
    Coding,
    FieldDescriptor,
    FieldKind,
    FillStatistics,
    FormDefinition,
    ReconcileContext,
    ReconcileResult,
    ResponseNode,
    Urgency,
    ValueSource,
)
from form_reconciler.placeholders import PlaceholderGenerator
from form_reconciler.reconciler import ReconciliationEngine, reconcile
from form_reconciler.rules import DEFAULT_RULES, RuleTier, SynthesisRule
from form_reconciler.store import FormStore
from form_reconciler.synthesis import ValueSynthesizer
from form_reconciler.validation import (
    CompletenessReport,
    check_completeness,
    check_critical_fields,
    find_unanswered,
    find_unanswered_required,
)

__all__ = [
    # Engine & synthesis
    "ReconciliationEngine",
    "reconcile",
    "ValueSynthesizer",
    "PlaceholderGenerator",
    "SynthesisRule",
    "RuleTier",
    "DEFAULT_RULES",
    # Store
    "FormStore",
    # Models
    "AnswerOption",
    "Coding",
    "FieldDescriptor",
    "FieldKind",
    "FillStatistics",
    "FormDefinition",
    "ReconcileContext",
    "ReconcileResult",
    "ResponseNode",
    "Urgency",
    "ValueSource",
    # Validation
    "CompletenessReport",
    "check_completeness",
    "check_critical_fields",
    "find_unanswered",
    "find_unanswered_required",
    # FHIR
    "fill_missing_fields",
    "questionnaire_from_fhir",
    "response_from_fhir",
    "response_to_fhir",
]

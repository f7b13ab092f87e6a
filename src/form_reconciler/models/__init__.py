"""Public model re-exports for form_reconciler.

Consumers should import from ``form_reconciler.models`` rather than
reaching into sub-modules directly.
"""

# --- Context ---
from form_reconciler.models.context import PATIENT_ATTRIBUTES, ReconcileContext, Urgency

# --- Schema ---
from form_reconciler.models.field import (
    TEXT_KINDS,
    AnswerOption,
    FieldDescriptor,
    FieldKind,
)

# --- Form definitions ---
from form_reconciler.models.form import FormDefinition

# --- Responses ---
from form_reconciler.models.response import AnswerValue, Coding, ResponseNode, find_node

# --- Results ---
from form_reconciler.models.result import FillStatistics, ReconcileResult, ValueSource

__all__ = [
    # Context
    "PATIENT_ATTRIBUTES",
    "ReconcileContext",
    "Urgency",
    # Schema
    "TEXT_KINDS",
    "AnswerOption",
    "FieldDescriptor",
    "FieldKind",
    "FormDefinition",
    # Responses
    "AnswerValue",
    "Coding",
    "ResponseNode",
    "find_node",
    # Results
    "FillStatistics",
    "ReconcileResult",
    "ValueSource",
]

"""Synthesis rule table - ordered ``(predicate, resolver)`` pairs.

Each rule pairs a linkId predicate with a resolver that proposes a
candidate value.  The synthesizer walks :data:`DEFAULT_RULES` top to
bottom; the first rule whose predicate accepts the field AND whose
candidate coerces to the field's type wins.  A resolver returning ``None``
(e.g. the context has no real value) lets evaluation fall through to the
next rule.

Tiers, in evaluation order:

  1. REAL_CONTEXT     - real patient attributes from the caller's context
  2. CLINICAL_CONTEXT - inferred from clinical context / urgency
  3. SAFE_DEFAULT     - conservative negative for safety-check fields
  4. PLACEHOLDER      - realistic but non-real demo values

The type-driven fallback (tier 5) is not a table entry; it lives in
:class:`~form_reconciler.synthesis.ValueSynthesizer` because it always
matches.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Any, Callable, Optional

from form_reconciler.coercion import find_negative_option
from form_reconciler.constants import (
    ANATOMY_TABLE,
    GENDER_ABBREVIATIONS,
    NEGATING_TOKENS,
    URGENCY_LABELS,
    URGENCY_SYNONYMS,
)
from form_reconciler.keywords import FieldKey, is_patient_name, tokenize
from form_reconciler.models.context import ReconcileContext, Urgency
from form_reconciler.models.field import FieldDescriptor, FieldKind
from form_reconciler.models.result import ValueSource
from form_reconciler.placeholders import PlaceholderGenerator

logger = logging.getLogger(__name__)


class RuleTier(IntEnum):
    REAL_CONTEXT = 1
    CLINICAL_CONTEXT = 2
    SAFE_DEFAULT = 3
    PLACEHOLDER = 4


_TIER_SOURCES: dict[RuleTier, ValueSource] = {
    RuleTier.REAL_CONTEXT: ValueSource.CONTEXT,
    RuleTier.CLINICAL_CONTEXT: ValueSource.CLINICAL_CONTEXT,
    RuleTier.SAFE_DEFAULT: ValueSource.SAFE_DEFAULT,
    RuleTier.PLACEHOLDER: ValueSource.PLACEHOLDER,
}


@dataclass(frozen=True)
class SynthesisRequest:
    """Everything a resolver may look at for one field.

    Resolvers append to ``warnings`` when the value they return needs
    clinician review; the engine copies them into the fill statistics.
    """

    field: FieldDescriptor
    key: FieldKey
    context: ReconcileContext
    placeholders: PlaceholderGenerator
    today: date
    warnings: list[str] = dataclasses.field(default_factory=list)


Predicate = Callable[[FieldKey], bool]
Resolver = Callable[[SynthesisRequest], Any]


@dataclass(frozen=True)
class SynthesisRule:
    """One entry in the rule table."""

    name: str
    tier: RuleTier
    predicate: Predicate
    resolver: Resolver

    @property
    def source(self) -> ValueSource:
        return _TIER_SOURCES[self.tier]


# ======================================================================
# Predicates
# ======================================================================

# Contact fields that belong to someone other than the patient.
_OTHER_PARTIES = (
    "emergency", "provider", "physician", "prescriber", "practitioner",
    "pharmacy", "insurance", "pcp", "ordering", "referring",
)


def _is_emergency_name(k: FieldKey) -> bool:
    return k.has_all("emergency", "contact", "name")


def _is_emergency_phone(k: FieldKey) -> bool:
    return k.has("emergency") and k.has("phone")


def _is_dob(k: FieldKey) -> bool:
    return k.has("dob", "birth")


def _is_age(k: FieldKey) -> bool:
    return k.has("age")


def _is_gender(k: FieldKey) -> bool:
    return k.has("gender", "sex")


def _is_mrn(k: FieldKey) -> bool:
    return k.has("mrn") or k.has_all("medical", "record")


def _is_patient_phone(k: FieldKey) -> bool:
    return k.has("phone") and not k.has(*_OTHER_PARTIES)


def _is_patient_email(k: FieldKey) -> bool:
    return k.has("email") and not k.has(*_OTHER_PARTIES)


def _is_patient_address(k: FieldKey) -> bool:
    return k.has("address") and not k.has("email", *_OTHER_PARTIES)


def _is_pharmacy(k: FieldKey) -> bool:
    return k.has("pharmacy")


def _is_insurance(k: FieldKey) -> bool:
    return k.has("insurance")


def _is_pcp(k: FieldKey) -> bool:
    if k.has("pcp", "practitioner"):
        return True
    return k.has("primary") and k.has("care", "provider", "physician")


def _is_ordering_provider(k: FieldKey) -> bool:
    return k.has("provider", "physician", "prescriber", "ordering", "clinician")


def _is_npi(k: FieldKey) -> bool:
    return k.has("npi")


def _is_dea(k: FieldKey) -> bool:
    return k.has("dea")


def _is_exam_type(k: FieldKey) -> bool:
    return k.has("examtype") or k.has_all("exam", "type")


def _is_body_region(k: FieldKey) -> bool:
    return k.has("bodyregion") or k.has_all("body", "region")


def _is_priority(k: FieldKey) -> bool:
    return k.has("priority")


def _is_indication(k: FieldKey) -> bool:
    return k.has("indication", "reason", "diagnosis") and not k.has("contraindication")


def _is_scheduling(k: FieldKey) -> bool:
    return k.has("appointment", "schedul")


def _keywords(*words: str) -> Predicate:
    return lambda k: k.has(*words)


# ======================================================================
# Resolvers
# ======================================================================

def _from_context(attribute: str) -> Resolver:
    """Resolver returning a context attribute verbatim (None/"" falls through)."""
    def resolve(req: SynthesisRequest) -> Any:
        value = getattr(req.context, attribute)
        return None if value == "" else value
    return resolve


def _gender(req: SynthesisRequest) -> Optional[str]:
    """Context gender, with single-letter record codes ("F") spelled out."""
    value = (req.context.patient_gender or "").strip()
    if not value:
        return None
    return GENDER_ABBREVIATIONS.get(value.lower(), value)


def _emergency_phone(req: SynthesisRequest) -> Optional[str]:
    return req.context.emergency_contact_phone or req.context.patient_phone or None


def _match_anatomy(clinical_context: Optional[str]) -> Optional[tuple[str, str]]:
    text = (clinical_context or "").lower()
    if not text:
        return None
    for words, region, exam in ANATOMY_TABLE:
        if any(w in text for w in words):
            return region, exam
    return None


def _exam_type(req: SynthesisRequest) -> Optional[str]:
    hit = _match_anatomy(req.context.clinical_context)
    return hit[1] if hit else None


def _body_region(req: SynthesisRequest) -> Optional[str]:
    hit = _match_anatomy(req.context.clinical_context)
    return hit[0] if hit else None


def _priority(req: SynthesisRequest) -> Any:
    """Urgency tier for priority fields; absent urgency reads as routine.

    Choice fields pick the option whose words match the tier's synonyms,
    skipping negated options ("Non-urgent"), and fall back to the first
    declared option.
    """
    tier = (req.context.urgency or Urgency.ROUTINE).value
    field = req.field
    if field.effective_kind is FieldKind.CHOICE:
        synonyms = set(URGENCY_SYNONYMS[tier])
        for opt in field.options:
            words = tokenize(opt.label) | tokenize(opt.code or "")
            if words & NEGATING_TOKENS:
                continue
            if words & synonyms:
                return opt
        return field.options[0]
    return URGENCY_LABELS[tier]


def _indication(req: SynthesisRequest) -> Optional[str]:
    return req.context.clinical_context or None


def _scheduling_note(req: SynthesisRequest) -> str:
    if req.context.urgency is Urgency.STAT:
        return "Immediate - STAT order"
    return "Schedule at earliest availability"


def _negative(phrase: str) -> Resolver:
    """Conservative negative answer for safety-check fields.

    boolean -> False, numeric -> 0, choice -> the option that reads as
    "no"/"none", text -> *phrase*.  Dates and times fall through.
    """
    def resolve(req: SynthesisRequest) -> Any:
        field = req.field
        kind = field.effective_kind
        if kind is FieldKind.BOOLEAN:
            return False
        if kind is FieldKind.INTEGER:
            return 0
        if kind is FieldKind.DECIMAL:
            return 0.0
        if kind is FieldKind.CHOICE:
            option = find_negative_option(field.options)
            if option is None:
                message = (
                    f"Safety field {field.link_id!r} declares no negative option; "
                    f"answered with first option {field.options[0].label!r} pending review"
                )
                logger.warning("%s", message)
                req.warnings.append(message)
                return field.options[0]
            return option
        if kind in (FieldKind.DATE, FieldKind.DATE_TIME, FieldKind.TIME):
            return None
        return phrase
    return resolve


def _placeholder(method: str) -> Resolver:
    def resolve(req: SynthesisRequest) -> Any:
        return getattr(req.placeholders, method)()
    return resolve


def _placeholder_dob(req: SynthesisRequest) -> str:
    return req.placeholders.date_of_birth(req.today, req.context.patient_age)


def _placeholder_email(req: SynthesisRequest) -> str:
    return req.placeholders.email(req.context.patient_name)


# ======================================================================
# Rule table
# ======================================================================

_R = RuleTier

DEFAULT_RULES: tuple[SynthesisRule, ...] = (
    # --- 1. Real context ---
    SynthesisRule("emergency_contact_name", _R.REAL_CONTEXT, _is_emergency_name, _from_context("emergency_contact_name")),
    SynthesisRule("emergency_contact_phone", _R.REAL_CONTEXT, _is_emergency_phone, _emergency_phone),
    SynthesisRule("patient_name", _R.REAL_CONTEXT, is_patient_name, _from_context("patient_name")),
    SynthesisRule("patient_dob", _R.REAL_CONTEXT, _is_dob, _from_context("patient_dob")),
    SynthesisRule("patient_age", _R.REAL_CONTEXT, _is_age, _from_context("patient_age")),
    SynthesisRule("patient_gender", _R.REAL_CONTEXT, _is_gender, _gender),
    SynthesisRule("patient_mrn", _R.REAL_CONTEXT, _is_mrn, _from_context("patient_mrn")),
    SynthesisRule("patient_phone", _R.REAL_CONTEXT, _is_patient_phone, _from_context("patient_phone")),
    SynthesisRule("patient_email", _R.REAL_CONTEXT, _is_patient_email, _from_context("patient_email")),
    SynthesisRule("patient_address", _R.REAL_CONTEXT, _is_patient_address, _from_context("patient_address")),
    SynthesisRule("preferred_pharmacy", _R.REAL_CONTEXT, _is_pharmacy, _from_context("preferred_pharmacy")),
    SynthesisRule("insurance", _R.REAL_CONTEXT, _is_insurance, _from_context("insurance")),
    SynthesisRule("practitioner", _R.REAL_CONTEXT, _is_pcp, _from_context("practitioner")),
    # --- 2. Clinical context ---
    SynthesisRule("exam_type", _R.CLINICAL_CONTEXT, _is_exam_type, _exam_type),
    SynthesisRule("body_region", _R.CLINICAL_CONTEXT, _is_body_region, _body_region),
    SynthesisRule("priority", _R.CLINICAL_CONTEXT, _is_priority, _priority),
    SynthesisRule("indication", _R.CLINICAL_CONTEXT, _is_indication, _indication),
    SynthesisRule("scheduling", _R.CLINICAL_CONTEXT, _is_scheduling, _scheduling_note),
    # --- 3. Conservative negatives ---
    SynthesisRule("contraindication", _R.SAFE_DEFAULT, _keywords("contraindication"), _negative("None known")),
    SynthesisRule("allergy", _R.SAFE_DEFAULT, _keywords("allerg"), _negative("No known allergies")),
    SynthesisRule("pregnancy", _R.SAFE_DEFAULT, _keywords("pregnan"), _negative("Not pregnant / Not applicable")),
    SynthesisRule("implant", _R.SAFE_DEFAULT, _keywords("implant", "pacemaker", "metal", "claustrophob"), _negative("No")),
    SynthesisRule("contrast", _R.SAFE_DEFAULT, _keywords("contrast"), _negative("No contrast")),
    SynthesisRule("sedation", _R.SAFE_DEFAULT, _keywords("sedation"), _negative("Not required")),
    SynthesisRule("transport", _R.SAFE_DEFAULT, _keywords("transport"), _negative("Not required")),
    SynthesisRule("fasting", _R.SAFE_DEFAULT, _keywords("fasting"), _negative("Not required")),
    SynthesisRule("refill", _R.SAFE_DEFAULT, _keywords("refill"), _negative("No refills")),
    SynthesisRule("special_requirements", _R.SAFE_DEFAULT, _keywords("special"), _negative("None")),
    # --- 4. Placeholders ---
    SynthesisRule("emergency_contact_name", _R.PLACEHOLDER, _is_emergency_name, _placeholder("emergency_contact_name")),
    SynthesisRule("emergency_contact_phone", _R.PLACEHOLDER, _is_emergency_phone, _placeholder("phone")),
    SynthesisRule("patient_name", _R.PLACEHOLDER, is_patient_name, _placeholder("person_name")),
    SynthesisRule("patient_dob", _R.PLACEHOLDER, _is_dob, _placeholder_dob),
    SynthesisRule("patient_age", _R.PLACEHOLDER, _is_age, _placeholder("age")),
    SynthesisRule("patient_gender", _R.PLACEHOLDER, _is_gender, _placeholder("gender")),
    SynthesisRule("patient_mrn", _R.PLACEHOLDER, _is_mrn, _placeholder("mrn")),
    SynthesisRule("patient_phone", _R.PLACEHOLDER, _is_patient_phone, _placeholder("phone")),
    SynthesisRule("patient_email", _R.PLACEHOLDER, _is_patient_email, _placeholder_email),
    SynthesisRule("patient_address", _R.PLACEHOLDER, _is_patient_address, _placeholder("address")),
    SynthesisRule("preferred_pharmacy", _R.PLACEHOLDER, _is_pharmacy, _placeholder("pharmacy")),
    SynthesisRule("insurance", _R.PLACEHOLDER, _is_insurance, _placeholder("insurance")),
    SynthesisRule("practitioner", _R.PLACEHOLDER, _is_pcp, _placeholder("provider_name")),
    SynthesisRule("npi", _R.PLACEHOLDER, _is_npi, _placeholder("npi")),
    SynthesisRule("dea", _R.PLACEHOLDER, _is_dea, _placeholder("dea")),
    SynthesisRule("ordering_provider", _R.PLACEHOLDER, _is_ordering_provider, _placeholder("provider_name")),
)

"""Caller-supplied context used to prefer real data over placeholders.

The context is assembled by the caller from a patient-record lookup plus a
short clinical-context string and an urgency classification.  It is frozen:
a reconciliation call never modifies it.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Urgency(str, Enum):
    STAT = "stat"
    URGENT = "urgent"
    ROUTINE = "routine"


# Attributes that come from the patient record (as opposed to clinical context).
PATIENT_ATTRIBUTES: tuple[str, ...] = (
    "patient_name",
    "patient_dob",
    "patient_age",
    "patient_gender",
    "patient_mrn",
    "patient_phone",
    "patient_email",
    "patient_address",
    "emergency_contact_name",
    "emergency_contact_phone",
    "preferred_pharmacy",
    "insurance",
    "practitioner",
)


class ReconcileContext(BaseModel):
    """Layered lookup bag: real patient attributes + clinical context."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    # Real patient data (preferred over anything synthesized)
    patient_name: Optional[str] = None
    patient_dob: Optional[str] = None
    patient_age: Optional[int] = None
    patient_gender: Optional[str] = None
    patient_mrn: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    patient_address: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    preferred_pharmacy: Optional[str] = None
    insurance: Optional[str] = None
    practitioner: Optional[str] = None

    # Clinical context, e.g. "subarachnoid hemorrhage", "chest pain"
    clinical_context: Optional[str] = None
    urgency: Optional[Urgency] = None

    @property
    def has_real_patient_data(self) -> bool:
        return any(getattr(self, name) not in (None, "") for name in PATIENT_ATTRIBUTES)

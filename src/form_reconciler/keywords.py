"""Keyword matching over field linkIds.

Rules classify fields by looking for keywords in the lower-cased linkId.
Long keywords match as substrings ("allerg" matches "allergyList"); the
short ones listed in ``TOKEN_KEYWORDS`` must match a whole token, where
tokens come from splitting on camelCase boundaries and non-alphanumerics.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from form_reconciler.constants import TOKEN_KEYWORDS

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def tokenize(text: str) -> frozenset[str]:
    """Split *text* into lower-case tokens ("patientDOB" -> {"patient", "dob"})."""
    spaced = _CAMEL_BOUNDARY.sub(" ", text or "")
    return frozenset(t for t in _NON_ALNUM.split(spaced.lower()) if t)


@dataclass(frozen=True)
class FieldKey:
    """Normalized view of a linkId used by rule predicates."""

    text: str
    tokens: frozenset[str]

    @classmethod
    def of(cls, link_id: str) -> "FieldKey":
        return cls(text=(link_id or "").lower(), tokens=tokenize(link_id))

    def _hit(self, word: str) -> bool:
        if word in TOKEN_KEYWORDS:
            return word in self.tokens
        return word in self.text

    def has(self, *words: str) -> bool:
        """True if ANY of *words* occurs."""
        return any(self._hit(w) for w in words)

    def has_all(self, *words: str) -> bool:
        """True if ALL of *words* occur."""
        return all(self._hit(w) for w in words)


# --- Shared classifications used by both the rule table and statistics ---

def is_identity_field(key: FieldKey) -> bool:
    """linkIds that denote patient-identity data (name/phone/email/address/MRN)."""
    return key.has("patient", "name", "phone", "email", "address", "mrn")


def is_patient_name(key: FieldKey) -> bool:
    return key.has_all("patient", "name") and not key.has("emergency")


def is_scheduled(key: FieldKey) -> bool:
    """Fields that denote future scheduling rather than "now"."""
    return key.has("appointment", "schedul")

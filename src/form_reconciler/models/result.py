"""Reconciliation output: the filled tree, fill statistics and provenance."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ValueSource(str, Enum):
    """Where a synthesized value came from.

    Only ``context`` values are authoritative; everything else is a draft
    pending clinician review.
    """

    CONTEXT = "context"
    CLINICAL_CONTEXT = "clinical_context"
    SAFE_DEFAULT = "safe_default"
    PLACEHOLDER = "placeholder"
    TYPE_DEFAULT = "type_default"


class FillStatistics(BaseModel):
    """Per-call counters for logging/observability."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_fields: int = 0
    already_filled: int = 0
    auto_filled: int = 0
    # Identity-shaped fields only (name/phone/email/address/MRN)
    used_real_data: int = 0
    used_generic_data: int = 0
    warnings: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def completion_rate(self) -> Optional[float]:
        """Percentage of visited leaves answered after the call."""
        if self.total_fields == 0:
            return None
        return round((self.already_filled + self.auto_filled) / self.total_fields * 100, 1)


@dataclass
class ReconcileResult:
    """What :meth:`ReconciliationEngine.reconcile` returns.

    ``response`` is a list of ``ResponseNode`` on success.  On malformed
    input it is the caller's original object, passed through untouched.
    """

    response: Any
    statistics: FillStatistics
    # linkId -> source, for every field synthesized in this call
    provenance: dict[str, ValueSource] = field(default_factory=dict)

    @property
    def placeholder_fields(self) -> list[str]:
        """linkIds whose values are non-authoritative placeholders."""
        return [lid for lid, src in self.provenance.items() if src is ValueSource.PLACEHOLDER]

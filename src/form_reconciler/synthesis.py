"""ValueSynthesizer - maps (field, context) to a type-correct candidate value.

Resolution order (first match wins):

  1-4. the ordered rule table in :mod:`form_reconciler.rules`
  5.   a type-driven fallback that always produces a value:

         boolean  -> False          integer -> 0        decimal -> 0.0
         date     -> today (scheduled fields: today + SCHEDULE_OFFSET_DAYS)
         dateTime -> now   (scheduled fields: that day at SCHEDULED_HOUR)
         time     -> one of TIME_SLOTS
         choice   -> the first declared option, verbatim
         text     -> ""  (left visibly empty for the clinician)

The synthesizer holds no mutable state of its own besides the injected
randomness provider; the clock and ``random.Random`` are constructor
arguments so tests can pin both.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, time, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

from form_reconciler.coercion import coerce
from form_reconciler.constants import SCHEDULE_OFFSET_DAYS, SCHEDULED_HOUR, TIME_SLOTS
from form_reconciler.keywords import FieldKey, is_scheduled
from form_reconciler.models.context import ReconcileContext
from form_reconciler.models.field import FieldDescriptor, FieldKind
from form_reconciler.models.result import ValueSource
from form_reconciler.placeholders import PlaceholderGenerator
from form_reconciler.rules import DEFAULT_RULES, RuleTier, SynthesisRequest, SynthesisRule

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValueSynthesizer:
    """Produces a value for a field that has no answer yet.

    Args:
        rules: ordered rule table; defaults to :data:`DEFAULT_RULES`.
        rng: randomness provider for placeholders and time slots.
        clock: returns "now"; defaults to the current UTC time.
    """

    def __init__(
        self,
        rules: Optional[Iterable[SynthesisRule]] = None,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._rules = tuple(rules) if rules is not None else DEFAULT_RULES
        self._placeholders = PlaceholderGenerator(rng)
        self._clock = clock or _utcnow

    @property
    def rules(self) -> tuple[SynthesisRule, ...]:
        return self._rules

    def synthesize(self, field: FieldDescriptor, context: ReconcileContext | None = None) -> Any:
        """Return a typed value for *field*.  Never raises."""
        value, _ = self.resolve(field, context)
        return value

    def resolve(
        self,
        field: FieldDescriptor,
        context: ReconcileContext | None = None,
        warnings: list[str] | None = None,
    ) -> tuple[Any, ValueSource]:
        """Like :meth:`synthesize` but also reports which tier produced the value.

        Args:
            warnings: if given, review warnings raised while resolving this
                field are appended to it.
        """
        now = self._clock()
        request = SynthesisRequest(
            field=field,
            key=FieldKey.of(field.link_id),
            context=context or ReconcileContext(),
            placeholders=self._placeholders,
            today=now.date(),
        )

        value, source = self._apply_rules(request, now)
        if warnings is not None:
            warnings.extend(request.warnings)
        return value, source

    def _apply_rules(self, request: SynthesisRequest, now: datetime) -> tuple[Any, ValueSource]:
        field = request.field
        # Set once the context holds a real value that does not fit the field.
        # Placeholders must never stand in for real patient data.
        real_value_rejected = False

        for rule in self._rules:
            if real_value_rejected and rule.tier is RuleTier.PLACEHOLDER:
                continue
            if not rule.predicate(request.key):
                continue
            candidate = rule.resolver(request)
            value = coerce(field, candidate)
            if value is not None:
                logger.debug("Field %s filled by rule %s (%s)", field.link_id, rule.name, rule.source.value)
                return value, rule.source
            if rule.tier is RuleTier.REAL_CONTEXT and candidate is not None and not real_value_rejected:
                real_value_rejected = True
                message = (
                    f"Context value {candidate!r} does not fit field {field.link_id!r} "
                    f"({field.effective_kind.value}); left for review"
                )
                logger.warning("%s", message)
                request.warnings.append(message)

        return self._type_default(request, now), ValueSource.TYPE_DEFAULT

    # ------------------------------------------------------------------
    # Type-driven fallback
    # ------------------------------------------------------------------

    def _type_default(self, req: SynthesisRequest, now: datetime) -> Any:
        field = req.field
        kind = field.effective_kind
        scheduled = is_scheduled(req.key)

        if kind is FieldKind.BOOLEAN:
            return False
        if kind is FieldKind.INTEGER:
            return 0
        if kind is FieldKind.DECIMAL:
            return 0.0
        if kind is FieldKind.DATE:
            day = req.today + timedelta(days=SCHEDULE_OFFSET_DAYS) if scheduled else req.today
            return day.isoformat()
        if kind is FieldKind.DATE_TIME:
            if scheduled:
                day = req.today + timedelta(days=SCHEDULE_OFFSET_DAYS)
                return datetime.combine(day, time(SCHEDULED_HOUR), tzinfo=now.tzinfo).isoformat()
            return now.replace(microsecond=0).isoformat()
        if kind is FieldKind.TIME:
            return self._placeholders.time_slot(TIME_SLOTS)
        if kind is FieldKind.CHOICE:
            return field.options[0].as_answer()
        return ""

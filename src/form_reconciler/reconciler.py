"""ReconciliationEngine - completes a partial answer tree against its schema.

The schema is the authority on which fields must exist; the partial tree
is the authority only on which values already exist.  The engine walks
both trees pairwise (schema level <-> matching response container) and:

  - skips ``display`` fields entirely
  - recurses into ``group`` fields, creating the response container when
    the partial tree lacks one (attached only if it receives a child)
  - leaves every existing answer untouched
  - synthesizes a value for every other leaf via :class:`ValueSynthesizer`,
    filling an existing answerless node in place rather than adding a twin

The caller's partial tree is never mutated: the engine works on a deep
copy.  Malformed input degrades to a pass-through with a warning in the
statistics instead of raising.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, List, Optional

from form_reconciler.keywords import FieldKey, is_identity_field
from form_reconciler.models.context import ReconcileContext
from form_reconciler.models.field import FieldDescriptor, FieldKind
from form_reconciler.models.result import FillStatistics, ReconcileResult, ValueSource
from form_reconciler.models.response import ResponseNode
from form_reconciler.synthesis import ValueSynthesizer
from form_reconciler.validation import answered_link_ids, check_critical_fields, group_link_ids

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Fills every unanswered leaf of a form.

    Args:
        synthesizer: value source for missing fields; defaults to a
            :class:`ValueSynthesizer` with the default rule table.
    """

    def __init__(self, synthesizer: Optional[ValueSynthesizer] = None) -> None:
        self._synthesizer = synthesizer or ValueSynthesizer()

    def reconcile(
        self,
        schema: Any,
        partial: Any,
        context: Optional[ReconcileContext] = None,
    ) -> ReconcileResult:
        """Return a complete response for *schema*, starting from *partial*.

        Args:
            schema: list of ``FieldDescriptor`` (or dicts in the same shape)
            partial: list of ``ResponseNode`` (or dicts); possibly empty
            context: real patient / clinical data; defaults to empty

        Returns:
            ReconcileResult with the filled tree, statistics and the
            provenance of every synthesized value.
        """
        if not isinstance(schema, (list, tuple)) or not isinstance(partial, (list, tuple)):
            return self._degraded(partial, "schema or partial response is missing or not a list")

        try:
            fields = [
                f if isinstance(f, FieldDescriptor) else FieldDescriptor.model_validate(f)
                for f in schema
            ]
            nodes = [
                n.model_copy(deep=True) if isinstance(n, ResponseNode) else ResponseNode.model_validate(copy.deepcopy(n))
                for n in partial
            ]
        except (ValueError, TypeError) as exc:
            return self._degraded(partial, f"malformed input: {exc}")

        context = context or ReconcileContext()
        stats = FillStatistics()
        provenance: dict[str, ValueSource] = {}

        self._fill_level(fields, nodes, context, stats, provenance)

        stats.warnings.extend(check_critical_fields(fields, nodes))
        for warning in stats.warnings:
            logger.warning("[reconcile] %s", warning)
        logger.info(
            "[reconcile] %d fields: %d already filled, %d auto-filled "
            "(identity: %d real, %d generic), real patient data=%s",
            stats.total_fields,
            stats.already_filled,
            stats.auto_filled,
            stats.used_real_data,
            stats.used_generic_data,
            context.has_real_patient_data,
        )
        return ReconcileResult(response=nodes, statistics=stats, provenance=provenance)

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    def _fill_level(
        self,
        fields: List[FieldDescriptor],
        nodes: List[ResponseNode],
        context: ReconcileContext,
        stats: FillStatistics,
        provenance: dict[str, ValueSource],
    ) -> None:
        """Reconcile one schema level against its response container's children.

        *nodes* is mutated in place: new leaves and containers are appended
        after the existing siblings.
        """
        answered = answered_link_ids(nodes, group_link_ids(fields))
        by_id: dict[str, ResponseNode] = {}
        for node in nodes:
            by_id.setdefault(node.link_id, node)

        for field in fields:
            if field.kind is FieldKind.DISPLAY:
                continue

            if field.kind is FieldKind.GROUP:
                container = by_id.get(field.link_id)
                created = container is None
                if created:
                    container = ResponseNode(link_id=field.link_id, children=[])
                elif container.children is None:
                    container.children = []
                self._fill_level(field.children, container.children, context, stats, provenance)
                if created and container.children:
                    nodes.append(container)
                    by_id[field.link_id] = container
                continue

            stats.total_fields += 1
            if field.link_id in answered:
                stats.already_filled += 1
                continue

            value, source = self._synthesizer.resolve(field, context, stats.warnings)
            existing = by_id.get(field.link_id)
            if existing is not None:
                # Answerless node already present: fill it where it stands
                existing.answer = value
            else:
                node = ResponseNode(link_id=field.link_id, answer=value)
                nodes.append(node)
                by_id[field.link_id] = node
            answered.add(field.link_id)
            stats.auto_filled += 1
            provenance[field.link_id] = source

            if is_identity_field(FieldKey.of(field.link_id)):
                if source is ValueSource.CONTEXT:
                    stats.used_real_data += 1
                else:
                    stats.used_generic_data += 1

    @staticmethod
    def _degraded(partial: Any, reason: str) -> ReconcileResult:
        logger.warning("[reconcile] %s; returning input unchanged", reason)
        return ReconcileResult(response=partial, statistics=FillStatistics(warnings=[reason]))


def reconcile(
    schema: Any,
    partial: Any,
    context: Optional[ReconcileContext] = None,
) -> ReconcileResult:
    """Module-level shorthand using a default engine."""
    return ReconciliationEngine().reconcile(schema, partial, context)

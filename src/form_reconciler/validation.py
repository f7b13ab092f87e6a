"""Completeness checks over a (partial or complete) response tree.

Schema and response are walked pairwise: each schema level is matched
against the response nodes at the same level, and a leaf counts as
answered when a node with its exact linkId carries an answer somewhere in
that level's subtree (excluding subtrees that belong to sibling groups).
"""

from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel

from form_reconciler.keywords import FieldKey, is_patient_name
from form_reconciler.models.field import FieldDescriptor, FieldKind
from form_reconciler.models.response import ResponseNode


class CompletenessReport(BaseModel):
    """Summary of which schema leaves still lack an answer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_leaves: int
    answered: int
    missing_required: List[str]
    missing_optional: List[str]

    @computed_field
    @property
    def complete(self) -> bool:
        return not self.missing_required


def answered_link_ids(nodes: Iterable[ResponseNode], claimed: frozenset[str] = frozenset()) -> set[str]:
    """linkIds that carry an answer anywhere under *nodes*.

    Top-level nodes whose linkId is in *claimed* (containers of sibling
    schema groups) are not descended into.
    """
    found: set[str] = set()

    def walk(node: ResponseNode) -> None:
        if node.has_answer:
            found.add(node.link_id)
        for child in node.children or []:
            walk(child)

    for node in nodes:
        if node.has_answer:
            found.add(node.link_id)
        if node.link_id in claimed:
            continue
        for child in node.children or []:
            walk(child)
    return found


def group_link_ids(fields: Iterable[FieldDescriptor]) -> frozenset[str]:
    return frozenset(f.link_id for f in fields if f.kind is FieldKind.GROUP)


def _walk_missing(
    fields: List[FieldDescriptor], nodes: List[ResponseNode], missing: list[FieldDescriptor], counts: list[int]
) -> None:
    answered = answered_link_ids(nodes, group_link_ids(fields))
    by_id: dict[str, ResponseNode] = {}
    for node in nodes:
        by_id.setdefault(node.link_id, node)

    for field in fields:
        if field.kind is FieldKind.DISPLAY:
            continue
        if field.kind is FieldKind.GROUP:
            container = by_id.get(field.link_id)
            _walk_missing(field.children, (container.children or []) if container else [], missing, counts)
            continue
        counts[0] += 1
        if field.link_id not in answered:
            missing.append(field)


def find_unanswered(schema: List[FieldDescriptor], response: List[ResponseNode]) -> list[str]:
    """linkIds of every non-display leaf with no answer, in schema order."""
    missing: list[FieldDescriptor] = []
    _walk_missing(schema, response, missing, [0])
    return [f.link_id for f in missing]


def find_unanswered_required(schema: List[FieldDescriptor], response: List[ResponseNode]) -> list[str]:
    """linkIds of required leaves with no answer, in schema order."""
    missing: list[FieldDescriptor] = []
    _walk_missing(schema, response, missing, [0])
    return [f.link_id for f in missing if f.required]


def check_completeness(schema: List[FieldDescriptor], response: List[ResponseNode]) -> CompletenessReport:
    missing: list[FieldDescriptor] = []
    counts = [0]
    _walk_missing(schema, response, missing, counts)
    return CompletenessReport(
        total_leaves=counts[0],
        answered=counts[0] - len(missing),
        missing_required=[f.link_id for f in missing if f.required],
        missing_optional=[f.link_id for f in missing if not f.required],
    )


def check_critical_fields(schema: List[FieldDescriptor], response: List[ResponseNode]) -> list[str]:
    """Warnings for critical identity fields left empty.

    A patient-name field that is missing or answered with an empty string
    is flagged; forms that declare no patient-name field produce nothing.
    """
    warnings: list[str] = []
    name_fields = [
        f for root in schema for f in root.iter_leaves() if is_patient_name(FieldKey.of(f.link_id))
    ]
    for field in name_fields:
        node = _find_answer_node(response, field.link_id)
        if node is None or node.answer in (None, ""):
            warnings.append(f"Patient name field {field.link_id!r} may not be filled")
    return warnings


def _find_answer_node(nodes: List[ResponseNode], link_id: str) -> ResponseNode | None:
    for node in nodes:
        if node.link_id == link_id and node.has_answer:
            return node
        hit = _find_answer_node(node.children or [], link_id)
        if hit is not None:
            return hit
    return None

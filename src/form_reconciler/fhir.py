"""FHIR adapters - Questionnaire / QuestionnaireResponse <-> native models.

The native models keep the FHIR shapes close at hand (``linkId``, coded
answers as ``{system, code, display}``) but flatten two things:

  - ``item`` becomes ``children``
  - a response item's ``answer`` list becomes a single ``answer`` value
    (first answer wins; further answers are dropped)

Answers of value types we do not model (valueQuantity, valueReference,
...) and the other keys of each response item are kept on the node and
written back unchanged.

Encoding of answers on the way back out follows the field kind:

    boolean  -> valueBoolean     date     -> valueDate
    integer  -> valueInteger     dateTime -> valueDateTime
    decimal  -> valueDecimal     time     -> valueTime
    choice   -> valueCoding (literal options -> valueString)
    anything else -> valueString
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, List, Optional

from form_reconciler.models.context import ReconcileContext
from form_reconciler.models.field import AnswerOption, FieldDescriptor, FieldKind
from form_reconciler.models.form import FormDefinition
from form_reconciler.models.response import AnswerValue, Coding, ResponseNode
from form_reconciler.models.result import FillStatistics
from form_reconciler.reconciler import ReconciliationEngine

logger = logging.getLogger(__name__)

# FHIR item.type -> native kind.  Types we do not model are read as free text.
_FHIR_KINDS: dict[str, FieldKind] = {kind.value: kind for kind in FieldKind}
_FHIR_KINDS["open-choice"] = FieldKind.CHOICE

_KIND_VALUE_KEYS: dict[FieldKind, str] = {
    FieldKind.BOOLEAN: "valueBoolean",
    FieldKind.INTEGER: "valueInteger",
    FieldKind.DECIMAL: "valueDecimal",
    FieldKind.DATE: "valueDate",
    FieldKind.DATE_TIME: "valueDateTime",
    FieldKind.TIME: "valueTime",
}

# answerOption / answer keys read as a plain literal
_LITERAL_KEYS = ("valueString", "valueInteger", "valueDate", "valueTime")

# item keys rebuilt from the node; every other key is carried through
_ITEM_KEYS = ("linkId", "answer", "item")

# answer value[x] keys in the order they are tried
_ANSWER_KEYS = (
    "valueCoding", "valueBoolean", "valueInteger", "valueDecimal",
    "valueDate", "valueDateTime", "valueTime", "valueString", "valueUri",
)


# ======================================================================
# Questionnaire -> FieldDescriptor tree
# ======================================================================

def questionnaire_from_fhir(resource: dict) -> FormDefinition:
    """Parse a FHIR Questionnaire resource into a :class:`FormDefinition`.

    Raises:
        ValueError: if the resource is not a Questionnaire or an item is
            missing its linkId.
    """
    if not isinstance(resource, dict):
        raise ValueError("Questionnaire must be a JSON object")
    rtype = resource.get("resourceType", "Questionnaire")
    if rtype != "Questionnaire":
        raise ValueError(f"Expected a Questionnaire resource, got {rtype!r}")

    form_id = resource.get("id") or resource.get("name") or "questionnaire"
    return FormDefinition(
        id=form_id,
        title=resource.get("title") or form_id,
        version=resource.get("version"),
        description=resource.get("description"),
        items=[_field_from_fhir(item) for item in _items(resource)],
    )


def _items(obj: dict) -> list:
    items = obj.get("item") or []
    if not isinstance(items, list):
        raise ValueError("'item' must be a list")
    return items


def _field_from_fhir(item: dict) -> FieldDescriptor:
    link_id = item.get("linkId") if isinstance(item, dict) else None
    if not link_id:
        raise ValueError(f"Questionnaire item without linkId: {item!r}")

    kind = _FHIR_KINDS.get(item.get("type"), FieldKind.STRING)
    options: list[AnswerOption] = []
    children: list[FieldDescriptor] = []
    if kind is FieldKind.CHOICE:
        options = [_option_from_fhir(opt) for opt in item.get("answerOption") or []]
    elif kind is FieldKind.GROUP:
        children = [_field_from_fhir(child) for child in _items(item)]

    return FieldDescriptor(
        link_id=link_id,
        kind=kind,
        label=item.get("text") or "",
        required=bool(item.get("required", False)),
        options=options,
        children=children,
    )


def _option_from_fhir(option: dict) -> AnswerOption:
    coding = option.get("valueCoding")
    if coding:
        return AnswerOption(
            system=coding.get("system"),
            code=coding.get("code"),
            display=coding.get("display"),
        )
    for key in _LITERAL_KEYS:
        if key in option:
            return AnswerOption(literal=str(option[key]))
    raise ValueError(f"Unsupported answerOption: {option!r}")


# ======================================================================
# QuestionnaireResponse -> ResponseNode tree
# ======================================================================

def response_from_fhir(resource: dict) -> List[ResponseNode]:
    """Parse a QuestionnaireResponse resource into a list of root nodes."""
    if not isinstance(resource, dict):
        raise ValueError("QuestionnaireResponse must be a JSON object")
    rtype = resource.get("resourceType", "QuestionnaireResponse")
    if rtype != "QuestionnaireResponse":
        raise ValueError(f"Expected a QuestionnaireResponse resource, got {rtype!r}")
    return [_node_from_fhir(item) for item in _items(resource)]


def _node_from_fhir(item: dict) -> ResponseNode:
    link_id = item.get("linkId") if isinstance(item, dict) else None
    if not link_id:
        raise ValueError(f"QuestionnaireResponse item without linkId: {item!r}")

    answer: Optional[AnswerValue] = None
    raw_answer: Optional[dict] = None
    children = [_node_from_fhir(child) for child in _items(item)]
    answers = item.get("answer") or []
    if answers:
        first = answers[0]
        answer = decode_answer(first)
        if answer is None:
            # Value type we do not model: keep the entry as-is
            raw_answer = {k: v for k, v in first.items() if k != "item"} or None
        # Items nested under an answer are flattened into the node's children
        children.extend(_node_from_fhir(child) for child in _items(first))

    return ResponseNode(
        link_id=link_id,
        answer=answer,
        raw_answer=raw_answer,
        children=children or None,
        extras={k: v for k, v in item.items() if k not in _ITEM_KEYS},
    )


def decode_answer(answer: dict) -> Optional[AnswerValue]:
    """Read the value[x] of one FHIR answer entry."""
    for key in _ANSWER_KEYS:
        if key in answer:
            value = answer[key]
            if key == "valueCoding":
                return Coding.model_validate(value)
            return value
    return None


# ======================================================================
# ResponseNode tree -> QuestionnaireResponse
# ======================================================================

def encode_answer(value: AnswerValue, kind: Optional[FieldKind] = None) -> dict:
    """Wrap *value* in the FHIR value[x] key for *kind*.

    When *kind* is unknown the key is chosen from the Python type.
    """
    if isinstance(value, Coding):
        return {"valueCoding": value.model_dump(exclude_none=True)}
    if kind is not None and kind in _KIND_VALUE_KEYS:
        return {_KIND_VALUE_KEYS[kind]: value}
    if kind is None:
        if isinstance(value, bool):
            return {"valueBoolean": value}
        if isinstance(value, int):
            return {"valueInteger": value}
        if isinstance(value, float):
            return {"valueDecimal": value}
    return {"valueString": str(value)}


def _schema_index(fields: Iterable[FieldDescriptor]) -> dict[str, FieldDescriptor]:
    index: dict[str, FieldDescriptor] = {}
    for field in fields:
        index.setdefault(field.link_id, field)
    return index


def _encode_nodes(
    nodes: List[ResponseNode],
    level: dict[str, FieldDescriptor],
    fallback: dict[str, FieldDescriptor],
) -> list[dict]:
    out = []
    for node in nodes:
        field = level.get(node.link_id) or fallback.get(node.link_id)
        item: dict[str, Any] = {"linkId": node.link_id, **copy.deepcopy(node.extras)}
        if field is not None and field.label:
            item.setdefault("text", field.label)
        if node.answer is not None:
            item["answer"] = [encode_answer(node.answer, field.effective_kind if field else None)]
        elif node.raw_answer is not None:
            item["answer"] = [copy.deepcopy(node.raw_answer)]
        if node.children:
            child_level = _schema_index(field.children) if field is not None else {}
            item["item"] = _encode_nodes(node.children, child_level, fallback)
        out.append(item)
    return out


def response_to_fhir(
    nodes: List[ResponseNode],
    schema: List[FieldDescriptor],
    base: Optional[dict] = None,
    status: str = "in-progress",
) -> dict:
    """Encode *nodes* as a QuestionnaireResponse.

    Args:
        nodes: response tree to encode
        schema: the form's fields; used to pick each answer's value[x] key
        base: optional original QuestionnaireResponse; its other keys
            (id, subject, questionnaire, ...) are kept, ``item`` is replaced
        status: used only when *base* carries no status
    """
    fallback: dict[str, FieldDescriptor] = {}
    for root in schema:
        for leaf in root.iter_leaves():
            fallback.setdefault(leaf.link_id, leaf)

    doc = copy.deepcopy(base) if base else {}
    doc.setdefault("resourceType", "QuestionnaireResponse")
    doc.setdefault("status", status)
    doc["item"] = _encode_nodes(nodes, _schema_index(schema), fallback)
    return doc


# ======================================================================
# Document-level convenience
# ======================================================================

def fill_missing_fields(
    questionnaire_response: Any,
    questionnaire: Any,
    context: Optional[ReconcileContext] = None,
    engine: Optional[ReconciliationEngine] = None,
) -> tuple[Any, FillStatistics]:
    """Reconcile raw FHIR documents.

    Returns the filled QuestionnaireResponse and the fill statistics.  If
    either document cannot be parsed, the response document is returned
    unchanged together with a warning-only statistics record.
    """
    engine = engine or ReconciliationEngine()
    try:
        definition = questionnaire_from_fhir(questionnaire)
        nodes = response_from_fhir(questionnaire_response)
    except (ValueError, TypeError) as exc:
        reason = f"could not parse FHIR input: {exc}"
        logger.warning("[fill_missing_fields] %s; returning input unchanged", reason)
        return questionnaire_response, FillStatistics(warnings=[reason])

    result = engine.reconcile(definition.items, nodes, context)
    filled = response_to_fhir(result.response, definition.items, base=questionnaire_response)
    return filled, result.statistics

"""Response models - the (partial or complete) answer tree for a form.

Each ``ResponseNode`` mirrors a ``FieldDescriptor`` by ``linkId``.  Leaf
nodes carry at most one ``answer``; group-mirroring nodes carry
``children`` instead.
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Coding(BaseModel):
    """A coded answer, copied verbatim from a choice field's option."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    system: Optional[str] = None
    code: Optional[str] = None
    display: Optional[str] = None


# bool precedes int so True/False are never read back as 1/0.
AnswerValue = Union[bool, int, float, str, Coding]


class ResponseNode(BaseModel):
    """One node in the answer tree."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    link_id: str
    answer: Optional[AnswerValue] = None
    children: Optional[List["ResponseNode"]] = None

    # FHIR pass-through, never serialized: an answer entry whose value[x]
    # type is not modelled (valueQuantity, valueReference, ...) and the
    # other keys of the source item (text, definition, extension, ...).
    raw_answer: Optional[dict[str, Any]] = Field(default=None, exclude=True)
    extras: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @property
    def has_answer(self) -> bool:
        """An answer is present when it is set at all; ``""`` counts."""
        return self.answer is not None or self.raw_answer is not None

    def find(self, link_id: str) -> Optional["ResponseNode"]:
        """Depth-first search for the first node with *link_id* (self included)."""
        if self.link_id == link_id:
            return self
        for child in self.children or []:
            hit = child.find(link_id)
            if hit is not None:
                return hit
        return None


def find_node(nodes: List[ResponseNode], link_id: str) -> Optional[ResponseNode]:
    """Depth-first search across a list of root nodes."""
    for node in nodes:
        hit = node.find(link_id)
        if hit is not None:
            return hit
    return None

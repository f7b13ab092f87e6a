"""Form-definition models - the declarative schema of a clinical form.

A form is an ordered tree of ``FieldDescriptor`` nodes:

  Answerable (leaf) kinds:
    - string, text: free text
    - boolean, integer, decimal: scalar values
    - date, dateTime, time: ISO-formatted strings
    - choice: pick one of the declared ``options``

  Structural kinds (never carry an answer):
    - group: container for nested ``children``
    - display: static text shown to the clinician

JSON/YAML payloads use the FHIR-style camelCase names (``linkId``); Python
code uses snake_case attributes.  Both spellings are accepted on input.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .response import Coding


class FieldKind(str, Enum):
    """Field type; mirrors the FHIR Questionnaire item types we support."""

    STRING = "string"
    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    DATE_TIME = "dateTime"
    TIME = "time"
    CHOICE = "choice"
    GROUP = "group"
    DISPLAY = "display"


# Kinds whose synthesized value is plain text.
TEXT_KINDS = frozenset({FieldKind.STRING, FieldKind.TEXT})


class AnswerOption(BaseModel):
    """One selectable option on a ``choice`` field.

    Coded options carry ``code``/``display`` (and optionally ``system``);
    literal options carry only ``literal``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    system: Optional[str] = None
    code: Optional[str] = None
    display: Optional[str] = None
    literal: Optional[str] = None

    @model_validator(mode="after")
    def _chk(self):
        if self.code is None and self.display is None and self.literal is None:
            raise ValueError("answer option needs a code, display or literal")
        return self

    @property
    def label(self) -> str:
        """Human-readable text used for matching (display > literal > code)."""
        return self.display or self.literal or self.code or ""

    def as_answer(self) -> Coding | str:
        """The verbatim answer value for this option."""
        if self.code is not None or self.display is not None:
            return Coding(system=self.system, code=self.code, display=self.display)
        return self.literal

    def matches(self, text: str) -> bool:
        """Case-insensitive match of *text* against code, display or literal."""
        needle = text.strip().lower()
        return any(
            v is not None and v.strip().lower() == needle
            for v in (self.code, self.display, self.literal)
        )


class FieldDescriptor(BaseModel):
    """One schema node."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    link_id: str
    kind: FieldKind
    label: str = ""
    required: bool = False
    options: List[AnswerOption] = Field(default_factory=list)
    children: List["FieldDescriptor"] = Field(default_factory=list)

    @model_validator(mode="after")
    def _chk(self):
        if self.children and self.kind is not FieldKind.GROUP:
            raise ValueError(f"field {self.link_id!r}: only group fields may have children")
        if self.options and self.kind is not FieldKind.CHOICE:
            raise ValueError(f"field {self.link_id!r}: only choice fields may have options")
        return self

    @property
    def is_leaf(self) -> bool:
        """True for fields that carry an answer (not group, not display)."""
        return self.kind not in (FieldKind.GROUP, FieldKind.DISPLAY)

    @property
    def effective_kind(self) -> FieldKind:
        """Kind used for synthesis; a choice without options is free text."""
        if self.kind is FieldKind.CHOICE and not self.options:
            return FieldKind.STRING
        return self.kind

    def iter_leaves(self):
        """Yield this field (if a leaf) and every leaf below it, depth-first."""
        if self.is_leaf:
            yield self
        for child in self.children:
            yield from child.iter_leaves()

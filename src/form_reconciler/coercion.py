"""Coerce a candidate value to the answer type of a field.

Every synthesized candidate passes through :func:`coerce` before it is
accepted.  A return of ``None`` means "this candidate does not fit the
field" and the synthesizer moves on to the next rule.

Encoding by effective kind:

    boolean          bool
    integer          int
    decimal          float
    date / dateTime  ISO string
    time             "HH:MM[:SS]" string
    choice           an option's verbatim answer (Coding or literal)
    string / text    str
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any, Optional

from form_reconciler.constants import NEGATIVE_OPTION_TOKENS
from form_reconciler.keywords import tokenize
from form_reconciler.models.field import AnswerOption, FieldDescriptor, FieldKind
from form_reconciler.models.response import Coding

_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2}(\.\d+)?)?$")
_TRUE_WORDS = {"true", "yes", "y"}
_FALSE_WORDS = {"false", "no", "n"}


def find_negative_option(options: list[AnswerOption]) -> Optional[AnswerOption]:
    """Return the first option whose text denotes a negative / none answer."""
    for opt in options:
        words = tokenize(opt.label) | tokenize(opt.code or "")
        if words & NEGATIVE_OPTION_TOKENS:
            return opt
    return None


def coerce(field: FieldDescriptor, candidate: Any) -> Any:
    """Coerce *candidate* to *field*'s answer type, or return ``None``."""
    if candidate is None:
        return None
    kind = field.effective_kind
    if kind is FieldKind.CHOICE:
        return _to_choice(field, candidate)
    return _HANDLERS.get(kind, _to_string)(candidate)


# ------------------------------------------------------------------
# Per-kind converters
# ------------------------------------------------------------------

def _to_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return None


def _to_integer(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        return int(value.strip())
    return None


def _to_decimal(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _to_date(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            date.fromisoformat(value.strip())
        except ValueError:
            return None
        return value.strip()
    return None


def _to_date_time(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return datetime.combine(value, time()).isoformat()
    if isinstance(value, str):
        text = value.strip()
        try:
            datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return text
    return None


def _to_time(value: Any) -> Optional[str]:
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, str) and _TIME_RE.match(value.strip()):
        return value.strip()
    return None


def _to_string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Coding):
        return value.display or value.code
    if isinstance(value, AnswerOption):
        return value.label
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    return None


def _to_choice(field: FieldDescriptor, value: Any) -> Any:
    """Map a candidate onto one of the field's declared options.

    Never invents a code: the result is always ``option.as_answer()`` for
    some option in ``field.options``.
    """
    options = field.options
    if isinstance(value, AnswerOption):
        return value.as_answer() if value in options else None
    if isinstance(value, Coding):
        for opt in options:
            if opt.code is not None and opt.code == value.code:
                return opt.as_answer()
        value = value.display or ""
    if isinstance(value, bool):
        if value:
            return None
        neg = find_negative_option(options)
        return neg.as_answer() if neg is not None else None
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, str) and value.strip():
        for opt in options:
            if opt.matches(value):
                return opt.as_answer()
    return None


_HANDLERS = {
    FieldKind.BOOLEAN: _to_boolean,
    FieldKind.INTEGER: _to_integer,
    FieldKind.DECIMAL: _to_decimal,
    FieldKind.DATE: _to_date,
    FieldKind.DATE_TIME: _to_date_time,
    FieldKind.TIME: _to_time,
    FieldKind.STRING: _to_string,
    FieldKind.TEXT: _to_string,
}

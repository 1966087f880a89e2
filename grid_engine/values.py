"""
Display formatting and type-directed coercion of field values.

Formatting turns any stored value into cell text. Coercion turns edited cell
text back into a value, using the kind of the value already stored for that
field (not the shape of the edited text). A numeric field stays numeric and a
structured field stays structured across an edit.
"""

from __future__ import annotations

import json
import math
import re
from enum import Enum
from typing import Any

from .errors import CoercionError


class ValueKind(str, Enum):
    """Kind of a stored field value, as used for coercion."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    COMPOSITE = "composite"


def kind_of(value: Any) -> ValueKind:
    """
    Classify a stored value.

    Notes
    -----
    `bool` is checked before numbers because it subclasses `int`. Values of
    any other type are treated as strings.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, (dict, list, tuple)):
        return ValueKind.COMPOSITE
    return ValueKind.STRING


def format_value(value: Any) -> str:
    """
    Render a field value as cell text.

    Rules
    -----
    - None (or an absent field) renders as empty text.
    - Objects and arrays render as compact JSON.
    - Booleans render as ``true`` / ``false``.
    - Integral floats render without a trailing ``.0``.
    - Other scalars render with ``str``.
    """
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return ""
    if kind is ValueKind.COMPOSITE:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


_NUMBER_PATTERN = re.compile(r"-?(0|[1-9][0-9]*)(\.[0-9]+)?([eE][+-]?[0-9]+)?")


def _parse_number(text: str) -> int | float:
    # JSON number syntax only, so the saved value formats back to `text`.
    match = _NUMBER_PATTERN.fullmatch(text)
    if match is None:
        raise CoercionError(f"{text!r} is not a number.")
    if match.group(2) is None and match.group(3) is None:
        return int(text)
    number = float(text)
    if not math.isfinite(number):
        raise CoercionError(f"{text!r} is not a finite number.")
    return number


def coerce_value(text: str, reference_kind: ValueKind) -> Any:
    """
    Coerce edited text to a value of the reference kind.

    Parameters
    ----------
    text:
        Text from the cell editor.
    reference_kind:
        Kind of the value stored for the field when the edit started.

    Returns
    -------
    Any
        A number for NUMBER, a parsed object or array for COMPOSITE, else
        `text` unchanged.

    Raises
    ------
    CoercionError
        If the text is not plain number text, or not a JSON object or array,
        respectively.
    """
    if reference_kind is ValueKind.NUMBER:
        return _parse_number(text)
    if reference_kind is ValueKind.COMPOSITE:
        try:
            value = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CoercionError(f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno}).") from exc
        if not isinstance(value, (dict, list)):
            raise CoercionError("Expected a JSON object or array.")
        return value
    return text


def coerce(text: str, reference_value: Any) -> Any:
    """Coerce `text` using the kind of `reference_value`."""
    return coerce_value(text, kind_of(reference_value))

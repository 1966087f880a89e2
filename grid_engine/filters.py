"""
Parsing of user-entered filter and document text.

Both are literal JSON objects. The engine does not interpret them; it only
checks that the text is an object before handing it to the host.
"""

from __future__ import annotations

import json
from typing import Any

from .errors import DocumentParseError, FilterParseError, InputValidationError


def _parse_object(text: str, *, what: str, error: type[InputValidationError]) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise error(f"Invalid {what} JSON: {exc.msg} (line {exc.lineno}, column {exc.colno}).") from exc
    if not isinstance(payload, dict):
        raise error(f"The {what} must be a JSON object, got {type(payload).__name__}.")
    return payload


def parse_filter(text: str) -> dict[str, Any]:
    """
    Parse filter text.

    Blank text means "match everything" and yields an empty object.

    Raises
    ------
    FilterParseError
        If the text is not a JSON object.
    """
    if not text.strip():
        return {}
    return _parse_object(text, what="filter", error=FilterParseError)


def parse_document(text: str) -> dict[str, Any]:
    """
    Parse document text for an insert.

    Raises
    ------
    DocumentParseError
        If the text is blank or not a JSON object.
    """
    if not text.strip():
        raise DocumentParseError("The document must not be empty.")
    return _parse_object(text, what="document", error=DocumentParseError)

"""
Record and identifier helpers.

A record is a JSON-shaped mapping returned by the remote service. Every record
carries the identifier field `_id`, whose value is an opaque token such as
``{"$oid": "65f0c0ffee..."}``. Identifiers are compared for equality only;
nothing here looks inside them.
"""

from __future__ import annotations

import json
import secrets
from typing import Any, Mapping

ID_FIELD = "_id"

Record = dict[str, Any]
Identifier = Any


def identifier_of(record: Mapping[str, Any]) -> Identifier:
    """
    Return the identifier token of a record.

    Raises
    ------
    KeyError
        If the record has no identifier field.
    """
    return record[ID_FIELD]


def identifier_key(identifier: Identifier) -> str:
    """
    Return a hashable equality key for an identifier token.

    The key is canonical JSON text. It is only used for lookups and must not
    be parsed back into a token.
    """
    return json.dumps(identifier, sort_keys=True, separators=(",", ":"), default=str)


def same_identifier(left: Identifier, right: Identifier) -> bool:
    """Return True if two identifier tokens denote the same record."""
    return identifier_key(left) == identifier_key(right)


def find_record(records: list[Record], identifier: Identifier) -> Record | None:
    """
    Find the record carrying `identifier`.

    Returns
    -------
    Record | None
        The matching record object itself (not a copy), or None.
    """
    wanted = identifier_key(identifier)
    for record in records:
        if ID_FIELD in record and identifier_key(record[ID_FIELD]) == wanted:
            return record
    return None


def new_object_id() -> dict[str, str]:
    """Return a fresh wrapped identifier token with 24 hex digits."""
    return {"$oid": secrets.token_hex(12)}

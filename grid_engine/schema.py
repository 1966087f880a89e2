"""
Column discovery for heterogeneous records.

Records in one grid do not share a schema. The visible columns are the union
of every field name across the loaded records, with the identifier pinned
first and the rest in first-seen order.

Invariants
----------
- Every field present in any record appears exactly once.
- Names are compared by exact string equality (no case folding).
- The column set is always recomputed from the full record list.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from .documents import ID_FIELD


def union_columns(records: Iterable[Mapping[str, object]]) -> tuple[str, ...]:
    """
    Build the ordered column set for a batch of records.

    Parameters
    ----------
    records:
        Records in display order.

    Returns
    -------
    tuple[str, ...]
        Field names, identifier first, then first-seen order.
    """
    columns: list[str] = [ID_FIELD]
    seen = {ID_FIELD}
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return tuple(columns)


def has_column(columns: Sequence[str], field: str) -> bool:
    """Return True if `field` is already part of `columns`."""
    return field in columns

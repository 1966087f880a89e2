"""
Pagination over an in-memory record list.

All functions are pure. Navigation saturates at the first and last page and
never raises at a boundary.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, TypeVar

T = TypeVar("T")


class PageMove(str, Enum):
    """Navigation gestures."""

    FIRST = "first"
    PREVIOUS = "previous"
    NEXT = "next"
    LAST = "last"


@dataclass(frozen=True, slots=True)
class PageWindow:
    """
    Bounds of the current page.

    Attributes
    ----------
    page:
        Current page, 1-based and already clamped.
    page_size:
        Maximum records per page.
    total:
        Number of records in the collection.
    page_count:
        Number of pages, at least 1.
    start:
        Index of the first record on the page.
    stop:
        Index one past the last record on the page.
    """

    page: int
    page_size: int
    total: int
    page_count: int
    start: int
    stop: int


def _require_page_size(page_size: int) -> None:
    if page_size <= 0:
        raise ValueError("page_size must be positive.")


def page_count(total: int, page_size: int) -> int:
    """Return ``max(1, ceil(total / page_size))``."""
    _require_page_size(page_size)
    return max(1, math.ceil(max(0, total) / page_size))


def clamp_page(page: int, count: int) -> int:
    """Clamp `page` into ``[1, count]``."""
    return min(max(1, page), max(1, count))


def page_window(*, total: int, page_size: int, page: int) -> PageWindow:
    """
    Compute the bounds for `page`.

    Raises
    ------
    ValueError
        If page_size is not positive.
    """
    count = page_count(total, page_size)
    current = clamp_page(page, count)
    start = (current - 1) * page_size
    stop = min(start + page_size, max(0, total))
    return PageWindow(
        page=current,
        page_size=page_size,
        total=max(0, total),
        page_count=count,
        start=start,
        stop=max(start, stop),
    )


def page_slice(records: Sequence[T], window: PageWindow) -> list[T]:
    """Return the records that fall inside `window`."""
    return list(records[window.start : window.stop])


def navigate(window: PageWindow, move: PageMove) -> int:
    """
    Return the page reached from `window` by `move`.

    The result is always within ``[1, window.page_count]``.
    """
    if move is PageMove.FIRST:
        return 1
    if move is PageMove.PREVIOUS:
        return max(1, window.page - 1)
    if move is PageMove.NEXT:
        return min(window.page_count, window.page + 1)
    if move is PageMove.LAST:
        return window.page_count
    raise ValueError(f"Unknown page move: {move!r}")

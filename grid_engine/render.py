"""
Rendering for grid output.

This module renders a GridSnapshot to deterministic, human-readable text.
"""

from __future__ import annotations

from .orchestrator import GridSnapshot, MessageSlot

_MESSAGE_ORDER: tuple[MessageSlot, ...] = (
    MessageSlot.COLLECTIONS,
    MessageSlot.FETCH,
    MessageSlot.FILTER,
    MessageSlot.EDIT,
    MessageSlot.ACTION,
)


def _clip(text: str, width: int) -> str:
    single_line = text.replace("\r", " ").replace("\n", " ")
    if len(single_line) <= width:
        return single_line
    return single_line[: max(0, width - 1)] + "…"


def render_grid_text(snapshot: GridSnapshot, *, max_cell_width: int = 40) -> str:
    """
    Render the current page of a grid as a plain-text table.

    Parameters
    ----------
    snapshot:
        Grid state to render.
    max_cell_width:
        Cells longer than this are clipped. Must be at least 1.

    Returns
    -------
    str
        A deterministic text representation of the page.

    Raises
    ------
    ValueError
        If max_cell_width is less than 1.
    """
    if max_cell_width < 1:
        raise ValueError("max_cell_width must be at least 1.")

    window = snapshot.window
    lines: list[str] = []
    lines.append(f"Collection: {snapshot.collection or '-'}")
    if snapshot.filter_text:
        lines.append(f"Filter: {snapshot.filter_text}")
    lines.append(
        f"Page {window.page} of {window.page_count} ({window.total} documents, {window.page_size} per page)"
    )
    lines.append("")

    header = [_clip(column, max_cell_width) for column in snapshot.columns]
    body = [[_clip(cell, max_cell_width) for cell in row] for row in snapshot.rows]

    widths = [len(h) for h in header]
    for row in body:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def _line(cells: list[str]) -> str:
        return " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

    lines.append(_line(header))
    lines.append("-+-".join("-" * w for w in widths))
    for row in body:
        lines.append(_line(row))
    if not body:
        lines.append("(no documents)")

    messages = [snapshot.message(slot) for slot in _MESSAGE_ORDER]
    shown = [m for m in messages if m is not None]
    if shown:
        lines.append("")
        for message in shown:
            lines.append(f"{message.level.value.upper()}: {message.text}")

    return "\n".join(lines)

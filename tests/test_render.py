from __future__ import annotations

import pytest

from grid_engine.edit_session import EditPhase
from grid_engine.orchestrator import GridSnapshot, InlineMessage, MessageLevel, MessageSlot
from grid_engine.pagination import page_window
from grid_engine.render import render_grid_text


def _snapshot(**overrides: object) -> GridSnapshot:
    values: dict[str, object] = dict(
        collections=("users",),
        collection="users",
        filter_text="",
        columns=("_id", "name"),
        rows=(("1", "Bob"), ("2", "A very long name indeed")),
        identifiers=(1, 2),
        window=page_window(total=2, page_size=10, page=1),
        edit=None,
        edit_phase=EditPhase.IDLE,
        loading=False,
        waiting_for_host=False,
        messages={},
        revision=1,
    )
    values.update(overrides)
    return GridSnapshot(**values)  # type: ignore[arg-type]


def test_render_is_deterministic() -> None:
    text = render_grid_text(_snapshot(), max_cell_width=10)
    assert text == "\n".join(
        [
            "Collection: users",
            "Page 1 of 1 (2 documents, 10 per page)",
            "",
            "_id | name",
            "----+-----------",
            "1   | Bob",
            "2   | A very lo…",
        ]
    )
    assert render_grid_text(_snapshot(), max_cell_width=10) == text


def test_render_lists_messages_in_control_order() -> None:
    snap = _snapshot(
        messages={
            MessageSlot.ACTION: InlineMessage(MessageLevel.INFO, "Document deleted."),
            MessageSlot.FILTER: InlineMessage(MessageLevel.ERROR, "Invalid filter JSON."),
        }
    )
    lines = render_grid_text(snap).splitlines()
    assert lines[-2:] == ["ERROR: Invalid filter JSON.", "INFO: Document deleted."]


def test_render_rejects_zero_width() -> None:
    with pytest.raises(ValueError):
        render_grid_text(_snapshot(), max_cell_width=0)

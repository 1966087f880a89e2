from __future__ import annotations

from typing import Any

import pytest

from grid_engine.edit_session import CommitTrigger, EditPhase
from grid_engine.errors import EditSessionError
from grid_engine.memory_service import InMemoryDocumentService
from grid_engine.orchestrator import GridOrchestrator, MessageLevel, MessageSlot


class SpyService(InMemoryDocumentService):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.updates: list[tuple[str, Any, dict[str, Any]]] = []

    async def update_document(self, collection: str, identifier: Any, update: dict[str, Any]) -> bool:
        self.updates.append((collection, identifier, dict(update)))
        return await super().update_document(collection, identifier, update)


@pytest.fixture
def spy() -> SpyService:
    return SpyService(
        {
            "people": [
                {"_id": "u1", "name": "Bob", "age": 30},
                {"_id": "u2", "name": "Ada", "tags": ["ops"]},
            ]
        }
    )


async def _grid(service: InMemoryDocumentService, **kwargs: Any) -> GridOrchestrator:
    grid = GridOrchestrator(service, **kwargs)
    await grid.select_collection("people")
    return grid


@pytest.mark.asyncio
async def test_numeric_edit_sends_a_number(spy: SpyService) -> None:
    grid = await _grid(spy)
    session = grid.begin_edit(0, "age")
    assert session.text == "30"

    assert await grid.commit_edit(text="31")

    assert spy.updates == [("people", "u1", {"age": 31})]
    assert isinstance(spy.updates[0][2]["age"], int)
    assert grid.records[0]["age"] == 31
    assert grid.edit_phase is EditPhase.IDLE
    message = grid.message(MessageSlot.EDIT)
    assert message is not None and message.level is MessageLevel.INFO


@pytest.mark.asyncio
async def test_unchanged_value_makes_no_remote_call(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(0, "name")
    assert await grid.commit_edit(CommitTrigger.FOCUS_LOST)
    assert spy.updates == []
    assert grid.edit_session is None


@pytest.mark.asyncio
async def test_invalid_number_blocks_the_update(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(0, "age")

    assert not await grid.commit_edit(text="thirty-one")

    assert spy.updates == []
    assert grid.records[0]["age"] == 30
    assert grid.edit_phase is EditPhase.IDLE
    message = grid.message(MessageSlot.EDIT)
    assert message is not None and message.level is MessageLevel.ERROR


@pytest.mark.asyncio
async def test_structured_cell_ignores_enter(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(1, "tags")

    assert not await grid.commit_edit(CommitTrigger.ENTER, text='["ops",\n"dev"]')
    assert grid.edit_phase is EditPhase.EDITING
    assert spy.updates == []

    assert await grid.commit_edit(CommitTrigger.CONFIRM)
    assert spy.updates == [("people", "u2", {"tags": ["ops", "dev"]})]
    assert grid.records[1]["tags"] == ["ops", "dev"]


@pytest.mark.asyncio
async def test_malformed_structured_text_is_rejected(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(1, "tags")
    assert not await grid.commit_edit(text='["ops"')
    assert spy.updates == []
    assert grid.records[1]["tags"] == ["ops"]


@pytest.mark.asyncio
async def test_structured_cell_keeps_its_shape(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(1, "tags")
    assert not await grid.commit_edit(text="5")
    assert spy.updates == []
    assert grid.records[1]["tags"] == ["ops"]
    message = grid.message(MessageSlot.EDIT)
    assert message is not None and message.level is MessageLevel.ERROR


@pytest.mark.asyncio
async def test_edit_targets_the_rendered_identifier(spy: SpyService) -> None:
    grid = await _grid(spy)
    session = grid.begin_edit(0, "name", identifier="u2")
    assert session.text == "Ada"
    assert await grid.commit_edit(text="Ada L.")
    assert spy.updates == [("people", "u2", {"name": "Ada L."})]
    assert grid.records[0]["name"] == "Bob"


@pytest.mark.asyncio
async def test_edit_of_a_record_off_the_current_page_is_refused(spy: SpyService) -> None:
    grid = await _grid(spy, page_size=1)
    grid.go_to_page(2)
    with pytest.raises(EditSessionError):
        grid.begin_edit(0, "name", identifier="u1")
    assert grid.edit_session is None


@pytest.mark.asyncio
async def test_edit_adding_a_field_extends_columns(spy: SpyService) -> None:
    grid = await _grid(spy)
    assert grid.columns == ("_id", "name", "age", "tags")
    grid.begin_edit(0, "email")

    assert await grid.commit_edit(text="bob@example.com")

    assert grid.columns == ("_id", "name", "age", "email", "tags")
    assert grid.snapshot().rows[0][3] == "bob@example.com"


@pytest.mark.asyncio
async def test_commit_targets_record_by_identifier_after_refetch(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(0, "age")
    await spy.update_document("people", "u1", {"age": "thirty"})
    spy.updates.clear()
    await grid.refresh()

    assert await grid.commit_edit(text="31")

    # The field was numeric when editing started, so the text is still coerced.
    assert spy.updates == [("people", "u1", {"age": 31})]
    assert grid.records[0]["age"] == 31


@pytest.mark.asyncio
async def test_update_of_missing_document_reports_not_updated(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(0, "name")
    await spy.delete_document("people", "u1")

    assert not await grid.commit_edit(text="Robert")

    message = grid.message(MessageSlot.EDIT)
    assert message is not None
    assert message.level is MessageLevel.WARNING
    assert "not updated" in message.text
    assert grid.records[0]["name"] == "Bob"


@pytest.mark.asyncio
async def test_remote_failure_leaves_record_unchanged(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(0, "name")
    spy.disconnect()

    assert not await grid.commit_edit(text="Robert")

    message = grid.message(MessageSlot.EDIT)
    assert message is not None and message.level is MessageLevel.ERROR
    assert message.text.startswith("Failed to update document:")
    assert grid.records[0]["name"] == "Bob"
    assert grid.edit_phase is EditPhase.IDLE


@pytest.mark.asyncio
async def test_identifier_cells_cannot_be_edited(spy: SpyService) -> None:
    grid = await _grid(spy)
    with pytest.raises(EditSessionError):
        grid.begin_edit(0, "_id")
    with pytest.raises(EditSessionError):
        grid.begin_edit(5, "name")


@pytest.mark.asyncio
async def test_cancel_edit(spy: SpyService) -> None:
    grid = await _grid(spy)
    grid.begin_edit(0, "name")
    grid.update_edit_text("Robert")
    assert grid.cancel_edit()
    assert grid.edit_session is None
    assert not await grid.commit_edit()
    assert spy.updates == []

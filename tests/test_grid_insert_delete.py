from __future__ import annotations

from typing import Any

import pytest

from grid_engine.memory_service import InMemoryDocumentService
from grid_engine.orchestrator import GridOrchestrator, MessageLevel, MessageSlot


class Confirmer:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.asked: list[dict[str, Any]] = []

    async def __call__(self, record: dict[str, Any]) -> bool:
        self.asked.append(record)
        return self.answer


async def _grid(service: InMemoryDocumentService, **kwargs: Any) -> GridOrchestrator:
    grid = GridOrchestrator(service, **kwargs)
    await grid.select_collection("users")
    return grid


@pytest.mark.asyncio
async def test_insert_refetches(service: InMemoryDocumentService) -> None:
    grid = await _grid(service)

    assert await grid.insert_document('{"name": "Zed", "age": 41}')

    assert len(grid.records) == 3
    assert grid.records[-1]["name"] == "Zed"
    assert "$oid" in grid.records[-1]["_id"]
    message = grid.message(MessageSlot.ACTION)
    assert message is not None and message.text.startswith("Inserted document")


@pytest.mark.asyncio
async def test_insert_rejects_non_object_text(service: InMemoryDocumentService) -> None:
    grid = await _grid(service)
    assert not await grid.insert_document("[]")
    assert not await grid.insert_document("   ")
    assert len(service.documents("users")) == 2
    message = grid.message(MessageSlot.ACTION)
    assert message is not None and message.level is MessageLevel.ERROR


@pytest.mark.asyncio
async def test_insert_duplicate_identifier_reports_failure(service: InMemoryDocumentService) -> None:
    grid = await _grid(service)
    assert not await grid.insert_document('{"_id": {"$oid": "' + "a" * 24 + '"}}')
    message = grid.message(MessageSlot.ACTION)
    assert message is not None and "duplicate key" in message.text
    assert len(grid.records) == 2


@pytest.mark.asyncio
async def test_insert_without_collection() -> None:
    grid = GridOrchestrator(InMemoryDocumentService())
    assert not await grid.insert_document('{"a": 1}')
    assert grid.message(MessageSlot.ACTION) is not None


@pytest.mark.asyncio
async def test_confirmed_delete_refetches(service: InMemoryDocumentService) -> None:
    confirm = Confirmer(True)
    grid = await _grid(service, confirm_delete=confirm)

    assert await grid.delete_row(0)

    assert confirm.asked[0]["name"] == "Bob"
    assert [r["_id"] for r in grid.records] == [{"$oid": "b" * 24}]
    assert len(service.documents("users")) == 1


@pytest.mark.asyncio
async def test_declined_delete_makes_no_remote_call(service: InMemoryDocumentService) -> None:
    grid = await _grid(service, confirm_delete=Confirmer(False))
    assert not await grid.delete_row(0)
    assert len(service.documents("users")) == 2
    assert len(grid.records) == 2


@pytest.mark.asyncio
async def test_delete_of_absent_document_keeps_rows(service: InMemoryDocumentService) -> None:
    grid = await _grid(service)
    await service.delete_document("users", {"$oid": "a" * 24})

    assert not await grid.delete_document({"$oid": "a" * 24})

    message = grid.message(MessageSlot.ACTION)
    assert message is not None
    assert message.level is MessageLevel.WARNING
    assert "not deleted" in message.text
    assert len(grid.records) == 2


@pytest.mark.asyncio
async def test_delete_of_unloaded_record_is_refused(service: InMemoryDocumentService) -> None:
    confirm = Confirmer(True)
    grid = await _grid(service, confirm_delete=confirm)
    assert not await grid.delete_document({"$oid": "f" * 24})
    assert not await grid.delete_row(7)
    assert confirm.asked == []

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from grid_engine.logging_config import setup_logging
from grid_engine.memory_service import InMemoryDocumentService


@pytest.fixture(autouse=True)
def _route_logs_through_stdlib() -> None:
    # The CLI reconfigures logging per call; reset it so each test starts on stdlib.
    setup_logging(level="DEBUG", fmt="console")


@pytest.fixture
def users() -> list[dict[str, Any]]:
    return [
        {"_id": {"$oid": "a" * 24}, "name": "Bob"},
        {"_id": {"$oid": "b" * 24}, "age": 5},
    ]


@pytest.fixture
def service(users: list[dict[str, Any]]) -> InMemoryDocumentService:
    return InMemoryDocumentService({"users": users, "orders": [{"_id": 1, "item": "pen"}]})


class RecordingSleep:
    """Sleep stand-in that records requested delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()

"""Qt adapter for the grid orchestrator.

The orchestrator lives on the engine loop thread. The GUI calls the methods of
this adapter, which schedule the matching orchestrator operation on that
loop. Every state change comes back as a `GridSnapshot` through the
`snapshot_changed` signal, delivered on the GUI thread.

Delete confirmation
-------------------
The orchestrator asks before each delete. The adapter turns the question into
`confirm_delete_requested(record, future)`; the GUI shows a dialog and
resolves the future with True or False. The orchestrator waits on the
future without blocking the loop.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Future
from typing import Any

from PySide6.QtCore import QObject, Signal

from grid_engine.documents import Identifier, Record
from grid_engine.edit_session import CommitTrigger
from grid_engine.errors import EditSessionError
from grid_engine.orchestrator import GridOrchestrator
from grid_engine.pagination import PageMove
from grid_engine.remote import DocumentService
from gui.adapters.event_loop import LoopThread


class GridAdapter(QObject):
    """Marshals grid operations onto the engine loop thread."""

    snapshot_changed = Signal(object)  # GridSnapshot
    confirm_delete_requested = Signal(object, object)  # record, Future[bool]
    edit_rejected = Signal(str)  # message

    def __init__(
        self,
        service: DocumentService,
        loop: LoopThread,
        *,
        page_size: int,
        retry_delay: float,
    ) -> None:
        super().__init__()
        self._loop = loop
        self._grid = GridOrchestrator(
            service,
            page_size=page_size,
            retry_delay=retry_delay,
            confirm_delete=self._confirm_delete,
            listener=self.snapshot_changed.emit,
        )

    # ---------- requests ----------
    def load_collections(self) -> None:
        self._loop.submit(self._grid.load_collections())

    def select_collection(self, name: str) -> None:
        self._loop.submit(self._grid.select_collection(name))

    def refresh(self) -> None:
        self._loop.submit(self._grid.refresh())

    def apply_filter(self, text: str) -> None:
        self._loop.submit(self._grid.apply_filter(text))

    def set_page_size(self, page_size: int) -> None:
        self._loop.submit(self._call(self._grid.set_page_size, page_size))

    def navigate(self, move: PageMove) -> None:
        self._loop.submit(self._call(self._grid.navigate, move))

    def begin_edit(self, row: int, field: str, identifier: Identifier) -> Future[Any]:
        return self._loop.submit(
            self._call(self._grid.begin_edit, row, field, identifier=identifier)
        )

    def cancel_edit(self) -> None:
        self._loop.submit(self._call(self._grid.cancel_edit))

    def commit_edit(self, text: str, trigger: CommitTrigger = CommitTrigger.CONFIRM) -> None:
        self._loop.submit(self._grid.commit_edit(trigger, text=text))

    def insert_document(self, text: str) -> None:
        self._loop.submit(self._grid.insert_document(text))

    def delete_row(self, row: int) -> None:
        self._loop.submit(self._grid.delete_row(row))

    def shutdown(self) -> None:
        """Cancel pending loads. The loop itself is owned by the window."""
        try:
            self._loop.submit(self._call(self._grid.close)).result(timeout=2.0)
        except (RuntimeError, TimeoutError):
            return

    # ---------- internals ----------
    async def _call(self, fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except EditSessionError as exc:
            self.edit_rejected.emit(str(exc))
            return None

    async def _confirm_delete(self, record: Record) -> bool:
        future: Future[bool] = Future()
        self.confirm_delete_requested.emit(record, future)
        return await asyncio.wrap_future(future)

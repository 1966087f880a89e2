"""
Grid orchestration.

The orchestrator owns the record list, the column set, the current page and
the single inline edit of one grid view. It sequences remote calls through
the retrying loaders and publishes an immutable `GridSnapshot` to a listener
after every state change.

Ordering
--------
Each records fetch is tagged with a generation number. Selecting another
collection (or starting another fetch) bumps the generation and cancels the
previous attempt, so a late result for an older request is discarded instead
of overwriting the grid.

Error handling
--------------
Remote failures are caught where the call is made and turned into inline
messages, one slot per triggering control. A failed fetch clears the records
so pagination and columns never describe stale data.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Sequence

from .documents import ID_FIELD, Identifier, Record, find_record, identifier_of, same_identifier
from .edit_session import CommitTrigger, EditPhase, EditSession, InlineEditController
from .errors import (
    CoercionError,
    DocumentParseError,
    EditSessionError,
    FilterParseError,
    RemoteOperationError,
)
from .filters import parse_document, parse_filter
from .loader import DEFAULT_RETRY_DELAY, RetryingLoader, Sleep
from .logging_config import get_logger
from .pagination import PageMove, PageWindow, navigate, page_slice, page_window
from .remote import DocumentService
from .schema import has_column, union_columns
from .values import coerce_value, format_value, kind_of

DEFAULT_PAGE_SIZE = 10

ConfirmDelete = Callable[[Record], Awaitable[bool]]
Listener = Callable[["GridSnapshot"], None]


class MessageSlot(str, Enum):
    """Control next to which an inline message is shown."""

    COLLECTIONS = "collections"
    FETCH = "fetch"
    FILTER = "filter"
    EDIT = "edit"
    ACTION = "action"


class MessageLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class InlineMessage:
    level: MessageLevel
    text: str


@dataclass(frozen=True, slots=True)
class GridSnapshot:
    """
    Immutable view of a grid for rendering.

    Attributes
    ----------
    collections:
        Known collection names.
    collection:
        Selected collection, if any.
    filter_text:
        Filter text currently applied.
    columns:
        Column set of the loaded records.
    rows:
        Display text of the current page, one tuple per row, aligned with
        `columns`.
    identifiers:
        Identifier of each row on the current page.
    window:
        Current page bounds.
    edit:
        Active edit session, if any.
    edit_phase:
        Phase of the inline editor.
    loading:
        True while a records fetch is in flight.
    waiting_for_host:
        True while a fetch is retrying because the host is not ready.
    messages:
        Inline messages by slot.
    revision:
        Incremented whenever rows, columns or the page change.
    """

    collections: tuple[str, ...]
    collection: str | None
    filter_text: str
    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    identifiers: tuple[Identifier, ...]
    window: PageWindow
    edit: EditSession | None
    edit_phase: EditPhase
    loading: bool
    waiting_for_host: bool
    messages: Mapping[MessageSlot, InlineMessage] = field(default_factory=dict)
    revision: int = 0

    def message(self, slot: MessageSlot) -> InlineMessage | None:
        """Return the message shown next to `slot`, if any."""
        return self.messages.get(slot)


async def _always_confirm(_record: Record) -> bool:
    return True


class GridOrchestrator:
    """
    Coordinates loading, paging and editing for one grid view.

    Parameters
    ----------
    service:
        Remote CRUD service.
    page_size:
        Initial number of rows per page.
    retry_delay:
        Seconds between retries while the host is not ready.
    confirm_delete:
        Coroutine asked before every delete; returning False aborts it.
    listener:
        Called with a fresh snapshot after every state change.
    sleep:
        Awaitable delay used by the loaders; injectable for tests.
    """

    def __init__(
        self,
        service: DocumentService,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        confirm_delete: ConfirmDelete = _always_confirm,
        listener: Listener | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive.")
        self._service = service
        self._confirm_delete = confirm_delete
        self._listener = listener
        self._records_loader: RetryingLoader[Sequence[Record]] = RetryingLoader(
            name="find_documents", retry_delay=retry_delay, sleep=sleep
        )
        self._collections_loader: RetryingLoader[Sequence[str]] = RetryingLoader(
            name="list_collections", retry_delay=retry_delay, sleep=sleep
        )
        self._edit = InlineEditController()

        self._collections: tuple[str, ...] = ()
        self._collection: str | None = None
        self._filter: dict[str, Any] = {}
        self._filter_text = ""
        self._records: list[Record] = []
        self._columns: tuple[str, ...] = union_columns(())
        self._page = 1
        self._page_size = page_size
        self._messages: dict[MessageSlot, InlineMessage] = {}
        self._records_generation = 0
        self._collections_generation = 0
        self._loading = False
        self._revision = 0
        self._log = get_logger("grid")

    # ---------- read-only state ----------
    @property
    def collection(self) -> str | None:
        return self._collection

    @property
    def collections(self) -> tuple[str, ...]:
        return self._collections

    @property
    def records(self) -> tuple[Record, ...]:
        return tuple(self._records)

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def window(self) -> PageWindow:
        return page_window(total=len(self._records), page_size=self._page_size, page=self._page)

    @property
    def edit_session(self) -> EditSession | None:
        return self._edit.session

    @property
    def edit_phase(self) -> EditPhase:
        return self._edit.phase

    def page_records(self) -> list[Record]:
        """Return the records of the current page."""
        return page_slice(self._records, self.window)

    def message(self, slot: MessageSlot) -> InlineMessage | None:
        return self._messages.get(slot)

    def snapshot(self) -> GridSnapshot:
        """Build an immutable view of the current state."""
        window = self.window
        rows = page_slice(self._records, window)
        return GridSnapshot(
            collections=self._collections,
            collection=self._collection,
            filter_text=self._filter_text,
            columns=self._columns,
            rows=tuple(
                tuple(format_value(record.get(column)) for column in self._columns)
                for record in rows
            ),
            identifiers=tuple(record.get(ID_FIELD) for record in rows),
            window=window,
            edit=self._edit.session,
            edit_phase=self._edit.phase,
            loading=self._loading,
            waiting_for_host=self._records_loader.waiting or self._collections_loader.waiting,
            messages=dict(self._messages),
            revision=self._revision,
        )

    # ---------- collections ----------
    async def load_collections(self) -> bool:
        """
        Fetch collection names.

        If the selected collection is missing from the new list, the first
        listed collection is selected, which fetches its records.

        Returns
        -------
        bool
            True if the list was applied.
        """
        self._collections_generation += 1
        generation = self._collections_generation
        self._messages.pop(MessageSlot.COLLECTIONS, None)

        task = self._collections_loader.run(self._service.list_collections)
        self._notify()
        await asyncio.wait({task})

        if task.cancelled() or generation != self._collections_generation:
            self._log.debug("stale_collections_discarded")
            return False

        exc = task.exception()
        if exc is not None:
            if not isinstance(exc, RemoteOperationError):
                raise exc
            self._set_message(
                MessageSlot.COLLECTIONS,
                MessageLevel.ERROR,
                f"Failed to load collections: {exc.message}",
            )
            self._notify()
            return False

        names = tuple(str(name) for name in task.result())
        self._collections = names
        self._log.info("collections_loaded", count=len(names))

        if names and self._collection not in names:
            await self.select_collection(names[0])
        elif not names and self._collection is not None:
            self._records_loader.cancel()
            self._records_generation += 1
            self._collection = None
            self._loading = False
            self._replace_records([])
            self._notify()
        else:
            self._notify()
        return True

    async def select_collection(self, name: str) -> bool:
        """
        Switch the grid to another collection and fetch its records.

        Any in-flight fetch for the previous collection is cancelled and its
        result ignored. The filter and any open edit are discarded.
        """
        self._records_loader.cancel()
        self._records_generation += 1
        if self._edit.cancel():
            self._log.debug("edit_discarded", reason="collection_changed")

        previous = self._collection
        self._collection = name
        self._filter = {}
        self._filter_text = ""
        self._page = 1
        for slot in (MessageSlot.FETCH, MessageSlot.FILTER, MessageSlot.EDIT, MessageSlot.ACTION):
            self._messages.pop(slot, None)
        self._log.info("collection_selected", collection=name, previous=previous)
        return await self.refresh()

    # ---------- records ----------
    async def refresh(self) -> bool:
        """
        Fetch the records of the selected collection with the current filter.

        Returns
        -------
        bool
            True if fresh records were applied. False on failure, when no
            collection is selected, or when a newer request superseded this one.
        """
        collection = self._collection
        if collection is None:
            return False

        self._records_generation += 1
        generation = self._records_generation
        query = dict(self._filter)
        self._loading = True
        self._messages.pop(MessageSlot.FETCH, None)

        task = self._records_loader.run(lambda: self._service.find_documents(collection, query))
        self._notify()
        await asyncio.wait({task})

        if task.cancelled() or generation != self._records_generation:
            self._log.debug("stale_fetch_discarded", collection=collection, generation=generation)
            return False

        self._loading = False
        exc = task.exception()
        if exc is not None:
            if not isinstance(exc, RemoteOperationError):
                raise exc
            self._replace_records([])
            self._set_message(
                MessageSlot.FETCH,
                MessageLevel.ERROR,
                f"Failed to load documents: {exc.message}",
            )
            self._notify()
            return False

        self._replace_records([dict(record) for record in task.result()])
        self._page = 1
        self._log.info("documents_loaded", collection=collection, count=len(self._records))
        self._notify()
        return True

    async def apply_filter(self, text: str) -> bool:
        """
        Apply filter text and refetch.

        Malformed text is reported next to the filter input and no request is
        made.
        """
        try:
            query = parse_filter(text)
        except FilterParseError as exc:
            self._set_message(MessageSlot.FILTER, MessageLevel.ERROR, str(exc))
            self._notify()
            return False

        self._messages.pop(MessageSlot.FILTER, None)
        self._filter = query
        self._filter_text = text.strip()
        if self._collection is None:
            self._notify()
            return False
        return await self.refresh()

    # ---------- pagination ----------
    def set_page_size(self, page_size: int) -> None:
        """
        Change rows per page and clamp the current page.

        Raises
        ------
        ValueError
            If page_size is not positive.
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive.")
        self._page_size = page_size
        self._page = self.window.page
        self._revision += 1
        self._notify()

    def go_to_page(self, page: int) -> None:
        """Show `page`, clamped into range."""
        self._page = page_window(
            total=len(self._records), page_size=self._page_size, page=page
        ).page
        self._revision += 1
        self._notify()

    def navigate(self, move: PageMove) -> None:
        """Apply a first/previous/next/last gesture."""
        self.go_to_page(navigate(self.window, move))

    # ---------- inline editing ----------
    def begin_edit(
        self, row: int, field: str, *, identifier: Identifier | None = None
    ) -> EditSession:
        """
        Open an editor on a cell of the current page.

        Parameters
        ----------
        row:
            Row index on the current page.
        field:
            Column to edit.
        identifier:
            Identifier of the record the caller rendered in that row. When
            given, it selects the record and `row` is ignored.

        Raises
        ------
        EditSessionError
            If the row or record is not on the page, the cell is an
            identifier cell, or a commit is still running.
        """
        rows = self.page_records()
        if self._collection is not None and identifier is not None:
            row = next(
                (
                    i
                    for i, record in enumerate(rows)
                    if ID_FIELD in record and same_identifier(record[ID_FIELD], identifier)
                ),
                -1,
            )
            if row < 0:
                raise EditSessionError("That document is not on the current page.")
        if self._collection is None or not 0 <= row < len(rows):
            raise EditSessionError(f"Row {row} is not on the current page.")
        session = self._edit.begin(
            row=row, field=field, record=rows[row], collection=self._collection
        )
        self._messages.pop(MessageSlot.EDIT, None)
        self._notify()
        return session

    def update_edit_text(self, text: str) -> None:
        """Replace the pending editor text."""
        self._edit.update_text(text)

    def cancel_edit(self) -> bool:
        """Discard the open editor without saving."""
        cancelled = self._edit.cancel()
        if cancelled:
            self._notify()
        return cancelled

    async def commit_edit(
        self, trigger: CommitTrigger = CommitTrigger.CONFIRM, *, text: str | None = None
    ) -> bool:
        """
        Save the open edit.

        Parameters
        ----------
        trigger:
            Gesture that requested the commit. Enter does not commit
            structured cells.
        text:
            Final editor text; replaces the pending text when given.

        Returns
        -------
        bool
            True if the value is saved (or was already stored). The editor is
            closed afterwards whatever the outcome, except when `trigger` was
            not accepted or another commit is running.
        """
        if text is not None and self._edit.phase is EditPhase.EDITING:
            self._edit.update_text(text)

        session = self._edit.begin_commit(trigger)
        if session is None:
            return False

        self._notify()
        try:
            return await self._commit(session)
        finally:
            self._edit.finish()
            self._notify()

    async def _commit(self, session: EditSession) -> bool:
        try:
            value = coerce_value(session.text, session.reference_kind)
        except CoercionError as exc:
            self._set_message(MessageSlot.EDIT, MessageLevel.ERROR, str(exc))
            return False

        record = None
        if session.collection == self._collection:
            record = find_record(self._records, session.identifier)
        if (
            record is not None
            and session.field in record
            and kind_of(record[session.field]) is kind_of(value)
            and record[session.field] == value
        ):
            return True

        try:
            modified = await self._service.update_document(
                session.collection, session.identifier, {session.field: value}
            )
        except RemoteOperationError as exc:
            self._log.warning(
                "update_failed", collection=session.collection, field=session.field, error=exc.message
            )
            self._set_message(
                MessageSlot.EDIT, MessageLevel.ERROR, f"Failed to update document: {exc.message}"
            )
            return False

        if not modified:
            self._set_message(
                MessageSlot.EDIT,
                MessageLevel.WARNING,
                "Document was not updated: no matching document was found.",
            )
            return False

        # Look the record up again; the list may have been replaced while awaiting.
        if session.collection == self._collection:
            record = find_record(self._records, session.identifier)
        else:
            record = None
        if record is not None:
            record[session.field] = value
            if not has_column(self._columns, session.field):
                self._columns = union_columns(self._records)
            self._revision += 1

        self._log.info("document_updated", collection=session.collection, field=session.field)
        self._set_message(MessageSlot.EDIT, MessageLevel.INFO, "Document updated.")
        return True

    # ---------- insert / delete ----------
    async def insert_document(self, text: str) -> bool:
        """
        Insert a document parsed from JSON text, then refetch.

        Returns
        -------
        bool
            True if the host accepted the document.
        """
        collection = self._collection
        if collection is None:
            self._set_message(MessageSlot.ACTION, MessageLevel.ERROR, "Select a collection first.")
            self._notify()
            return False

        try:
            document = parse_document(text)
        except DocumentParseError as exc:
            self._set_message(MessageSlot.ACTION, MessageLevel.ERROR, str(exc))
            self._notify()
            return False

        try:
            identifier = await self._service.insert_document(collection, document)
        except RemoteOperationError as exc:
            self._log.warning("insert_failed", collection=collection, error=exc.message)
            self._set_message(
                MessageSlot.ACTION, MessageLevel.ERROR, f"Failed to insert document: {exc.message}"
            )
            self._notify()
            return False

        self._log.info("document_inserted", collection=collection)
        self._set_message(
            MessageSlot.ACTION, MessageLevel.INFO, f"Inserted document {format_value(identifier)}."
        )
        if collection == self._collection:
            await self.refresh()
        else:
            self._notify()
        return True

    async def delete_row(self, row: int) -> bool:
        """Delete the record shown at page-relative `row`."""
        rows = self.page_records()
        if not 0 <= row < len(rows):
            self._set_message(
                MessageSlot.ACTION, MessageLevel.ERROR, f"Row {row} is not on the current page."
            )
            self._notify()
            return False
        return await self.delete_document(identifier_of(rows[row]))

    async def delete_document(self, identifier: Identifier) -> bool:
        """
        Delete one record after confirmation, then refetch.

        Returns
        -------
        bool
            True if the host deleted the record. Nothing is removed locally
            unless the refetch no longer returns it.
        """
        collection = self._collection
        record = find_record(self._records, identifier)
        if collection is None or record is None:
            self._set_message(
                MessageSlot.ACTION, MessageLevel.ERROR, "That document is not loaded in this grid."
            )
            self._notify()
            return False

        if not await self._confirm_delete(dict(record)):
            self._log.debug("delete_declined", collection=collection)
            return False

        try:
            deleted = await self._service.delete_document(collection, identifier)
        except RemoteOperationError as exc:
            self._log.warning("delete_failed", collection=collection, error=exc.message)
            self._set_message(
                MessageSlot.ACTION, MessageLevel.ERROR, f"Failed to delete document: {exc.message}"
            )
            self._notify()
            return False

        if not deleted:
            self._set_message(
                MessageSlot.ACTION,
                MessageLevel.WARNING,
                "Document was not deleted: no matching document was found.",
            )
            self._notify()
            return False

        self._log.info("document_deleted", collection=collection)
        self._set_message(MessageSlot.ACTION, MessageLevel.INFO, "Document deleted.")
        if collection == self._collection:
            await self.refresh()
        else:
            self._notify()
        return True

    # ---------- lifecycle ----------
    def close(self) -> None:
        """Cancel pending loads and ignore any result still in flight."""
        self._records_loader.cancel()
        self._collections_loader.cancel()
        self._records_generation += 1
        self._collections_generation += 1
        self._loading = False
        self._edit.cancel()

    # ---------- internals ----------
    def _replace_records(self, records: list[Record]) -> None:
        self._records = records
        self._columns = union_columns(records)
        self._page = self.window.page
        self._revision += 1

    def _set_message(self, slot: MessageSlot, level: MessageLevel, text: str) -> None:
        self._messages[slot] = InlineMessage(level=level, text=text)

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self.snapshot())

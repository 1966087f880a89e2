"""
In-memory host stand-ins.

`InMemoryDocumentService` implements the document boundary over plain
dictionaries and `SimulatedEngineHost` implements the lifecycle boundary.
They follow the host's observable behavior: requests fail with the
"not initialized" message until a connection is opened, updates report
whether anything was modified, and deletes report whether anything was
removed. The desktop demo, the CLI and the tests run against them.
"""

from __future__ import annotations

import asyncio
import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from .documents import ID_FIELD, Identifier, Record, identifier_key, new_object_id
from .errors import DocumentParseError, RemoteOperationError
from .host import InstallEmitter
from .values import kind_of

NOT_INITIALIZED_MESSAGE = "Database connection not initialized. Call connect() first."

SUPPORTED_SCHEMES = ("mongodb://", "mongodb+srv://")

INSTALL_STEPS: tuple[str, ...] = (
    "Creating data directory",
    "Downloading installer",
    "Installing database engine",
    "Adding engine to system PATH",
    "Starting database service",
)


def _same_value(left: Any, right: Any) -> bool:
    return kind_of(left) is kind_of(right) and left == right


class InMemoryDocumentService:
    """
    Document service backed by dictionaries.

    Parameters
    ----------
    collections:
        Initial documents by collection name. Documents without an identifier
        receive a generated one.
    connected:
        Whether requests succeed immediately.
    latency:
        Seconds awaited before each request completes.
    """

    def __init__(
        self,
        collections: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        *,
        connected: bool = True,
        latency: float = 0.0,
    ) -> None:
        self._collections: dict[str, list[Record]] = {}
        for name, documents in (collections or {}).items():
            self._collections[name] = [self._with_identifier(doc) for doc in documents]
        self._connected = connected
        self._latency = latency

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    def documents(self, collection: str) -> list[Record]:
        """Return a copy of the stored documents of `collection`."""
        return deepcopy(self._collections.get(collection, []))

    async def find_documents(self, collection: str, filter: dict[str, Any]) -> list[Record]:
        await self._begin()
        for key, value in filter.items():
            operators = [key] if key.startswith("$") else []
            if isinstance(value, dict):
                operators += [str(k) for k in value if str(k).startswith("$")]
            if operators:
                raise RemoteOperationError(f"unknown operator: {operators[0]}")
        return [
            deepcopy(doc)
            for doc in self._collections.get(collection, [])
            if self._matches(doc, filter)
        ]

    async def list_collections(self) -> list[str]:
        await self._begin()
        return sorted(self._collections)

    async def insert_document(self, collection: str, document: dict[str, Any]) -> Identifier:
        await self._begin()
        stored = self._with_identifier(document)
        documents = self._collections.setdefault(collection, [])
        if self._index_of(documents, stored[ID_FIELD]) is not None:
            raise RemoteOperationError(
                f"E11000 duplicate key error collection: {collection} index: _id_"
            )
        documents.append(stored)
        return deepcopy(stored[ID_FIELD])

    async def update_document(
        self, collection: str, identifier: Identifier, update: dict[str, Any]
    ) -> bool:
        await self._begin()
        if ID_FIELD in update:
            raise RemoteOperationError(
                "Performing an update on the path '_id' would modify the immutable field '_id'"
            )
        documents = self._collections.get(collection, [])
        index = self._index_of(documents, identifier)
        if index is None:
            return False
        record = documents[index]
        modified = False
        for key, value in update.items():
            if key not in record or not _same_value(record[key], value):
                record[key] = deepcopy(value)
                modified = True
        return modified

    async def delete_document(self, collection: str, identifier: Identifier) -> bool:
        await self._begin()
        documents = self._collections.get(collection, [])
        index = self._index_of(documents, identifier)
        if index is None:
            return False
        del documents[index]
        return True

    async def _begin(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)
        if not self._connected:
            raise RemoteOperationError(NOT_INITIALIZED_MESSAGE)

    @staticmethod
    def _with_identifier(document: Mapping[str, Any]) -> Record:
        stored = deepcopy(dict(document))
        if ID_FIELD not in stored:
            stored = {ID_FIELD: new_object_id(), **stored}
        return stored

    @staticmethod
    def _index_of(documents: Sequence[Record], identifier: Identifier) -> int | None:
        wanted = identifier_key(identifier)
        for i, doc in enumerate(documents):
            if identifier_key(doc.get(ID_FIELD)) == wanted:
                return i
        return None

    @staticmethod
    def _matches(document: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
        for key, value in filter.items():
            if key not in document:
                return False
            if key == ID_FIELD:
                if identifier_key(document[key]) != identifier_key(value):
                    return False
            elif not _same_value(document[key], value):
                return False
        return True


class SimulatedEngineHost:
    """
    Lifecycle host that simulates installing and connecting.

    Parameters
    ----------
    service:
        Document service whose connection this host opens and closes.
    installed:
        Whether the engine counts as installed from the start.
    step_delay:
        Seconds awaited between install steps.
    download_bytes:
        Size reported for the simulated installer download.
    fail_at_step:
        1-based step that fails, for exercising error paths.
    """

    def __init__(
        self,
        service: InMemoryDocumentService,
        *,
        installed: bool = False,
        step_delay: float = 0.0,
        download_bytes: int = 64 * 1024 * 1024,
        fail_at_step: int | None = None,
    ) -> None:
        self._service = service
        self._installed = installed
        self._step_delay = step_delay
        self._download_bytes = download_bytes
        self._fail_at_step = fail_at_step

    async def is_installed(self) -> bool:
        return self._installed

    async def install(self, emit: InstallEmitter) -> None:
        total = len(INSTALL_STEPS)
        for step, description in enumerate(INSTALL_STEPS, start=1):
            emit({"message": description, "step": step, "total_steps": total, "is_error": False})
            if step == self._fail_at_step:
                message = f"Command failed with exit code 1 during step {step}: {description}"
                emit({"message": message, "step": step, "total_steps": total, "is_error": True})
                raise RemoteOperationError(message)
            if step == 2:
                await self._download(emit)
            if self._step_delay:
                await asyncio.sleep(self._step_delay)
            emit(f"{description} - Completed")
        self._installed = True
        emit("Database engine installation completed successfully")

    async def connect(self, connection_string: str) -> None:
        if not connection_string.startswith(SUPPORTED_SCHEMES):
            raise RemoteOperationError(
                "Failed to parse connection string: scheme must be one of "
                + ", ".join(SUPPORTED_SCHEMES)
            )
        if not self._installed:
            raise RemoteOperationError("Failed to connect: the database engine is not running")
        self._service.connect()

    async def disconnect(self) -> None:
        self._service.disconnect()

    async def _download(self, emit: InstallEmitter) -> None:
        chunks = 4
        for i in range(chunks + 1):
            done = self._download_bytes * i // chunks
            emit(
                {
                    "bytes_downloaded": done,
                    "total_bytes": self._download_bytes,
                    "percentage": 100.0 * i / chunks,
                }
            )
            if self._step_delay:
                await asyncio.sleep(self._step_delay / chunks)


def load_collections_file(path: Path) -> dict[str, list[Record]]:
    """
    Read seed documents from a JSON file.

    The file holds one object mapping collection names to lists of documents.

    Raises
    ------
    DocumentParseError
        If the file is not valid JSON or has the wrong shape.
    OSError
        If the file cannot be read.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DocumentParseError(f"{path}: invalid JSON: {exc.msg}") from exc

    if not isinstance(payload, dict):
        raise DocumentParseError(f"{path}: expected an object of collections.")

    out: dict[str, list[Record]] = {}
    for name, documents in payload.items():
        if not isinstance(documents, list) or not all(isinstance(d, dict) for d in documents):
            raise DocumentParseError(f"{path}: collection {name!r} must be a list of objects.")
        out[str(name)] = [dict(d) for d in documents]
    return out

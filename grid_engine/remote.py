"""
Remote service boundary consumed by the grid engine.

The host process owns the database connection and executes every query. The
engine sees it only through this protocol. All methods are coroutines; every
failure is raised as `RemoteOperationError` carrying the host's message.

Notes
-----
- Filters and documents are plain JSON objects and are passed through as-is.
- Identifiers are opaque tokens; the engine never parses them.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from .documents import Identifier, Record
from .errors import RemoteOperationError

NOT_READY_SENTINEL = "database connection not initialized"


def is_not_ready(error: BaseException | str) -> bool:
    """
    Return True if a failure means the host has not finished connecting.

    Parameters
    ----------
    error:
        A `RemoteOperationError` (or any exception) or a raw message string.
    """
    if isinstance(error, RemoteOperationError):
        message = error.message
    else:
        message = str(error)
    return NOT_READY_SENTINEL in message.lower()


class DocumentService(Protocol):
    """CRUD surface of the host process."""

    async def find_documents(self, collection: str, filter: dict[str, Any]) -> Sequence[Record]:
        """
        Return the records of `collection` matching `filter`.

        Raises
        ------
        RemoteOperationError
            If the host rejects the query.
        """
        ...

    async def list_collections(self) -> Sequence[str]:
        """Return the collection names of the connected database."""
        ...

    async def insert_document(self, collection: str, document: dict[str, Any]) -> Identifier:
        """Insert `document` and return its identifier."""
        ...

    async def update_document(
        self, collection: str, identifier: Identifier, update: dict[str, Any]
    ) -> bool:
        """
        Set the fields in `update` on one record.

        Returns
        -------
        bool
            False if no record was modified.
        """
        ...

    async def delete_document(self, collection: str, identifier: Identifier) -> bool:
        """
        Delete one record.

        Returns
        -------
        bool
            False if no record was deleted.
        """
        ...

"""
Inline cell editing state machine.

States
------
IDLE
    No cell is being edited.
EDITING
    One cell has an open editor holding pending text.
COMMITTING
    The pending text is being sent to the host. No second commit may start.

Notes
-----
- Identifier cells are never editable.
- The identifier of the edited record, the collection and the kind of the
  value stored when the edit started are captured in the session. A commit
  uses those, so replacing the record list mid-edit cannot change how the
  text is coerced or which record is targeted.
- Structured (object/array) cells accept line breaks, so Enter does not
  commit them; they need the explicit confirm gesture or loss of focus.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping

from .documents import ID_FIELD, Identifier, identifier_of
from .errors import EditSessionError
from .values import ValueKind, format_value, kind_of


class EditPhase(str, Enum):
    """Lifecycle phase of the inline editor."""

    IDLE = "idle"
    EDITING = "editing"
    COMMITTING = "committing"


class CommitTrigger(str, Enum):
    """Gesture that asks for the pending text to be committed."""

    FOCUS_LOST = "focus_lost"
    ENTER = "enter"
    CONFIRM = "confirm"


@dataclass(frozen=True, slots=True)
class EditSession:
    """
    One active cell edit.

    Attributes
    ----------
    row:
        Page-relative row index of the edited cell.
    field:
        Field name of the edited cell.
    identifier:
        Identifier of the edited record.
    collection:
        Collection the record belongs to.
    text:
        Pending editor text.
    reference_kind:
        Kind of the stored value when editing started.
    """

    row: int
    field: str
    identifier: Identifier
    collection: str
    text: str
    reference_kind: ValueKind

    @property
    def multiline(self) -> bool:
        """True if the cell holds structured data."""
        return self.reference_kind is ValueKind.COMPOSITE


class InlineEditController:
    """Tracks the single active cell edit of a grid."""

    def __init__(self) -> None:
        self._phase = EditPhase.IDLE
        self._session: EditSession | None = None

    @property
    def phase(self) -> EditPhase:
        return self._phase

    @property
    def session(self) -> EditSession | None:
        return self._session

    def begin(
        self,
        *,
        row: int,
        field: str,
        record: Mapping[str, Any],
        collection: str,
    ) -> EditSession:
        """
        Open an editor on one cell.

        Parameters
        ----------
        row:
            Page-relative row index.
        field:
            Field name of the cell.
        record:
            The record currently shown in that row.
        collection:
            Collection the record belongs to.

        Returns
        -------
        EditSession
            The new session, seeded with the formatted current value.

        Raises
        ------
        EditSessionError
            If the cell is an identifier cell or a commit is in progress.
        """
        if field == ID_FIELD:
            raise EditSessionError("The identifier field cannot be edited.")
        if self._phase is EditPhase.COMMITTING:
            raise EditSessionError("An edit is still being saved.")

        current = record.get(field)
        self._session = EditSession(
            row=row,
            field=field,
            identifier=identifier_of(record),
            collection=collection,
            text=format_value(current),
            reference_kind=kind_of(current),
        )
        self._phase = EditPhase.EDITING
        return self._session

    def update_text(self, text: str) -> None:
        """
        Replace the pending text.

        Raises
        ------
        EditSessionError
            If no editor is open.
        """
        if self._phase is not EditPhase.EDITING or self._session is None:
            raise EditSessionError("No cell is being edited.")
        self._session = replace(self._session, text=text)

    def accepts(self, trigger: CommitTrigger) -> bool:
        """Return True if `trigger` commits the current session."""
        if self._session is None:
            return False
        if trigger is CommitTrigger.ENTER and self._session.multiline:
            return False
        return True

    def begin_commit(self, trigger: CommitTrigger) -> EditSession | None:
        """
        Move to COMMITTING.

        Returns
        -------
        EditSession | None
            The session to commit, or None when not editing, when a commit is
            already running, or when `trigger` does not commit this cell.
        """
        if self._phase is not EditPhase.EDITING or self._session is None:
            return None
        if not self.accepts(trigger):
            return None
        self._phase = EditPhase.COMMITTING
        return self._session

    def finish(self) -> None:
        """End a commit, successful or not, and return to IDLE."""
        self._phase = EditPhase.IDLE
        self._session = None

    def cancel(self) -> bool:
        """
        Discard the open editor.

        Returns
        -------
        bool
            True if an editor was discarded. A running commit is not cancelled.
        """
        if self._phase is not EditPhase.EDITING:
            return False
        self._phase = EditPhase.IDLE
        self._session = None
        return True

"""
Domain exceptions for DocDesk.

Notes
-----
Engine code raises a domain exception for every expected failure mode. Remote
failures are converted into inline display state by the orchestrator and the
connection manager; they are never allowed to escape to the GUI.
"""

from __future__ import annotations


class DocDeskError(RuntimeError):
    """Base exception for all DocDesk domain failures."""


class RemoteOperationError(DocDeskError):
    """
    Raised when the remote service rejects a request.

    The remote boundary delivers failures as a message string. The message is
    kept verbatim because it is also used to classify not-ready failures.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(DocDeskError):
    """Raised when user-entered text cannot be turned into a request."""


class CoercionError(InputValidationError):
    """Raised when edited cell text cannot be coerced to the field's type."""


class FilterParseError(InputValidationError):
    """Raised when filter text is not a JSON object."""


class DocumentParseError(InputValidationError):
    """Raised when document text for an insert is not a JSON object."""


class EditSessionError(DocDeskError):
    """Raised when an inline edit transition is not allowed."""


class HostEventError(DocDeskError):
    """Raised when an install/progress event payload has an unknown shape."""

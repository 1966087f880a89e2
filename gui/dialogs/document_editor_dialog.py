"""
New document dialog (UI only).

Purpose
-------
- Collect one document as JSON text for insertion into the open collection.
- Validate the text with the same parser the grid engine uses on insert.

Notes
-----
- The dialog never talks to the host. Insertion happens after it closes.
- An ``_id`` may be given explicitly; otherwise the host generates one.
"""

from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtCore import Qt
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from grid_engine.errors import DocumentParseError
from grid_engine.filters import parse_document


def _mono() -> QFont:
    f = QFont("Consolas")
    f.setStyleHint(QFont.Monospace)
    return f


@dataclass(frozen=True, slots=True)
class DocumentEditorResult:
    """
    Result payload returned by DocumentEditorDialog.

    Attributes
    ----------
    text:
        JSON object text as entered by the user.
    """

    text: str


class DocumentEditorDialog(QDialog):
    """Dialog for entering a new document as a JSON object."""

    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        collection: str,
        initial_text: str = "{\n  \n}",
    ) -> None:
        """
        Initialize the document editor dialog.

        Parameters
        ----------
        parent:
            Optional parent widget.
        collection:
            Name of the collection the document will be inserted into.
        initial_text:
            Initial editor contents.
        """
        super().__init__(parent)
        self.setWindowTitle(f"Insert into {collection}")
        self.setModal(True)
        self.resize(600, 460)

        self._result: DocumentEditorResult | None = None

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.setSpacing(10)

        banner = QLabel(
            "Enter one JSON object. Leave out _id to let the database generate it."
        )
        banner.setWordWrap(True)
        banner.setStyleSheet(
            "background:#2b2b2b; border:1px solid #555; color:#ddd; padding:6px; font-size:12px;"
        )
        root.addWidget(banner)

        self.document_edit = QPlainTextEdit()
        self.document_edit.setFont(_mono())
        self.document_edit.setPlainText(initial_text)
        root.addWidget(self.document_edit, 1)

        root.addWidget(self._build_collapsible_help())

        self._syntax_label = QLabel("")
        self._syntax_label.setWordWrap(True)
        root.addWidget(self._syntax_label)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Cancel)
        self.btn_insert = self.buttons.addButton("Insert", QDialogButtonBox.AcceptRole)
        self.btn_insert.setEnabled(False)

        self.buttons.rejected.connect(self.reject)
        self.btn_insert.clicked.connect(self._on_insert)

        root.addWidget(self.buttons)

        self.document_edit.textChanged.connect(self._sync_state)
        self._sync_state()

    def result_value(self) -> DocumentEditorResult | None:
        return self._result

    # ---------------- UI sections ----------------

    def _build_collapsible_help(self) -> QWidget:
        box = QWidget()
        layout = QVBoxLayout(box)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(0, 0, 0, 0)

        self.help_toggle = QToolButton()
        self.help_toggle.setText("Document syntax help")
        self.help_toggle.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        self.help_toggle.setArrowType(Qt.RightArrow)
        self.help_toggle.setCheckable(True)
        self.help_toggle.setChecked(False)
        self.help_toggle.toggled.connect(self._toggle_help)

        header_layout.addWidget(self.help_toggle)
        header_layout.addStretch(1)
        layout.addWidget(header)

        self.help_panel = QFrame()
        self.help_panel.setFrameShape(QFrame.StyledPanel)
        self.help_panel.setVisible(False)

        hp = QVBoxLayout(self.help_panel)
        hp.setContentsMargins(10, 10, 10, 10)

        help_text = QPlainTextEdit()
        help_text.setReadOnly(True)
        help_text.setFont(_mono())
        help_text.setPlainText(
            "\n".join(
                [
                    "Basics",
                    "  • The document must be a JSON object",
                    "  • Strings use double quotes",
                    "  • Nested objects and arrays are allowed",
                    "",
                    "Examples",
                    '  {"name": "Ada", "age": 36}',
                    '  {"tags": ["a", "b"], "address": {"city": "Oslo"}}',
                ]
            )
        )

        hp.addWidget(help_text)
        layout.addWidget(self.help_panel)

        return box

    # ---------------- Behavior ----------------

    def _toggle_help(self, is_open: bool) -> None:
        self.help_panel.setVisible(is_open)
        self.help_toggle.setArrowType(Qt.DownArrow if is_open else Qt.RightArrow)

    def _sync_state(self) -> None:
        """Validate the editor contents and update insert enablement."""
        text = self.document_edit.toPlainText()
        try:
            parse_document(text)
        except DocumentParseError as exc:
            self._syntax_label.setText(f"Syntax: {exc}")
            self.btn_insert.setEnabled(False)
            return
        self._syntax_label.setText("Syntax: OK")
        self.btn_insert.setEnabled(True)

    def _on_insert(self) -> None:
        text = self.document_edit.toPlainText()
        if not text.strip():
            return
        self._result = DocumentEditorResult(text=text)
        self.accept()

"""
Browse tab (engine-backed).

Purpose
-------
- Show one collection as a paged grid with one column per field.
- Edit cells in place, insert new documents and delete rows.
- Show inline messages next to the control that caused them.

Notes
-----
- All engine work goes through `GridAdapter`; the tab only renders snapshots.
- The table is rebuilt only when the snapshot revision changes, and never
  while a cell editor is open.
- Scalar cells commit on Enter or focus loss. Structured cells take line
  breaks, so they commit on Ctrl+Enter or focus loss.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Callable

from PySide6.QtCore import QEvent, QModelIndex, QObject, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QKeyEvent
from PySide6.QtWidgets import (
    QAbstractItemDelegate,
    QAbstractItemView,
    QComboBox,
    QGroupBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QStyledItemDelegate,
    QStyleOptionViewItem,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from grid_engine.documents import ID_FIELD, Record
from grid_engine.edit_session import CommitTrigger, EditSession
from grid_engine.orchestrator import GridSnapshot, InlineMessage, MessageLevel, MessageSlot
from grid_engine.pagination import PageMove
from grid_engine.values import format_value
from gui.adapters.grid_adapter import GridAdapter
from gui.dialogs.document_editor_dialog import DocumentEditorDialog
from gui.settings_store import PAGE_SIZE_CHOICES

_MESSAGE_COLORS = {
    MessageLevel.INFO: "#2e7d32",
    MessageLevel.WARNING: "#b26a00",
    MessageLevel.ERROR: "#c62828",
}


def _mono() -> QFont:
    f = QFont("Consolas")
    f.setStyleHint(QFont.Monospace)
    return f


def _show_message(label: QLabel, message: InlineMessage | None) -> None:
    if message is None:
        label.clear()
        label.setVisible(False)
        return
    label.setText(message.text)
    label.setStyleSheet(f"color: {_MESSAGE_COLORS[message.level]};")
    label.setVisible(True)


def _message_label() -> QLabel:
    label = QLabel("")
    label.setWordWrap(True)
    label.setVisible(False)
    return label


class CellEditDelegate(QStyledItemDelegate):
    """
    Item delegate that routes cell editing through the grid engine.

    Opening an editor starts an engine edit session; the session decides the
    editor kind and its initial text. Closing the editor commits or cancels
    that session.
    """

    def __init__(
        self,
        adapter: GridAdapter,
        rendered: Callable[[], GridSnapshot | None],
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._adapter = adapter
        self._rendered = rendered
        self._trigger = CommitTrigger.FOCUS_LOST
        self.closeEditor.connect(self._on_close_editor)

    def createEditor(  # type: ignore[override]
        self, parent: QWidget, option: QStyleOptionViewItem, index: QModelIndex
    ) -> QWidget | None:
        # Cells map to the snapshot the table was built from, not the
        # engine's current page.
        snap = self._rendered()
        if snap is None or not 0 <= index.row() < len(snap.identifiers):
            return None
        columns = snap.columns
        if not 0 <= index.column() < len(columns) or columns[index.column()] == ID_FIELD:
            return None
        pending = self._adapter.begin_edit(
            index.row(), columns[index.column()], snap.identifiers[index.row()]
        )
        try:
            session = pending.result(timeout=0.5)
        except TimeoutError:
            pending.cancel()
            return None
        if not isinstance(session, EditSession):
            return None

        self._trigger = CommitTrigger.FOCUS_LOST
        if session.multiline:
            editor: QWidget = QPlainTextEdit(parent)
            editor.setFont(_mono())
            editor.setToolTip("Ctrl+Enter to save, Esc to cancel")
        else:
            editor = QLineEdit(parent)
        editor.setProperty("session_text", session.text)
        return editor

    def setEditorData(self, editor: QWidget, index: QModelIndex) -> None:  # type: ignore[override]
        text = str(editor.property("session_text") or "")
        if isinstance(editor, QPlainTextEdit):
            if not editor.toPlainText():
                editor.setPlainText(text)
        elif isinstance(editor, QLineEdit):
            if not editor.text():
                editor.setText(text)

    def setModelData(self, editor: QWidget, model, index: QModelIndex) -> None:  # type: ignore[override]
        # The engine publishes the saved value; the model is rebuilt from that.
        if isinstance(editor, QPlainTextEdit):
            text = editor.toPlainText()
        elif isinstance(editor, QLineEdit):
            text = editor.text()
        else:
            return
        self._adapter.commit_edit(text, self._trigger)
        self._trigger = CommitTrigger.FOCUS_LOST

    def eventFilter(self, editor: QObject, event: QEvent) -> bool:  # type: ignore[override]
        if event.type() == QEvent.KeyPress and isinstance(event, QKeyEvent):
            is_enter = event.key() in (Qt.Key_Return, Qt.Key_Enter)
            if is_enter and isinstance(editor, QPlainTextEdit):
                if event.modifiers() & Qt.ControlModifier:
                    self._trigger = CommitTrigger.CONFIRM
                    self.commitData.emit(editor)
                    self.closeEditor.emit(editor, QAbstractItemDelegate.NoHint)
                    return True
                return False
            if is_enter and isinstance(editor, QLineEdit):
                self._trigger = CommitTrigger.ENTER
        return super().eventFilter(editor, event)

    def _on_close_editor(self, _editor: QWidget, hint) -> None:
        if hint == QAbstractItemDelegate.RevertModelCache:
            self._adapter.cancel_edit()


class BrowseTab(QWidget):
    """
    Browse tab for DocDesk.

    Responsibilities
    ----------------
    - Collection selection, filtering and pagination controls.
    - Inline cell editing, document insert and delete.
    - Rendering of `GridSnapshot` values published by the adapter.
    """

    def __init__(self, adapter: GridAdapter, *, page_size: int) -> None:
        super().__init__()
        self._adapter = adapter
        self._snapshot: GridSnapshot | None = None
        self._rendered: GridSnapshot | None = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)

        # Collection + filter
        source_box = QGroupBox("Collection")
        source_layout = QVBoxLayout(source_box)

        self.collection_combo = QComboBox()
        self.collection_combo.setMinimumWidth(220)
        self.collection_combo.textActivated.connect(self._adapter.select_collection)

        self.btn_reload_collections = QPushButton("Reload list")
        self.btn_reload_collections.clicked.connect(lambda: self._adapter.load_collections())

        self.btn_refresh = QPushButton("Refresh")
        self.btn_refresh.clicked.connect(lambda: self._adapter.refresh())

        row = QHBoxLayout()
        row.addWidget(QLabel("Collection:"))
        row.addWidget(self.collection_combo, 1)
        row.addWidget(self.btn_reload_collections)
        row.addWidget(self.btn_refresh)
        source_layout.addLayout(row)

        self.collections_message = _message_label()
        source_layout.addWidget(self.collections_message)

        self.filter_edit = QLineEdit()
        self.filter_edit.setFont(_mono())
        self.filter_edit.setPlaceholderText('Filter, e.g. {"name": "Bob"} (blank = all documents)')
        self.filter_edit.returnPressed.connect(self._apply_filter)

        btn_filter = QPushButton("Apply filter")
        btn_filter.clicked.connect(self._apply_filter)

        row2 = QHBoxLayout()
        row2.addWidget(QLabel("Filter:"))
        row2.addWidget(self.filter_edit, 1)
        row2.addWidget(btn_filter)
        source_layout.addLayout(row2)

        self.filter_message = _message_label()
        source_layout.addWidget(self.filter_message)

        layout.addWidget(source_box)

        # Grid
        self.status_label = QLabel("")
        self.status_label.setStyleSheet("color: #666;")
        layout.addWidget(self.status_label)

        self.fetch_message = _message_label()
        layout.addWidget(self.fetch_message)

        self.table = QTableWidget(0, 0)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setSelectionMode(QAbstractItemView.SingleSelection)
        self.table.setEditTriggers(
            QAbstractItemView.DoubleClicked | QAbstractItemView.EditKeyPressed
        )
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.Interactive)
        self.table.horizontalHeader().setStretchLastSection(True)
        self._delegate = CellEditDelegate(self._adapter, lambda: self._rendered, self.table)
        self.table.setItemDelegate(self._delegate)
        self._delegate.closeEditor.connect(self._on_editor_closed)
        layout.addWidget(self.table, 1)

        self.edit_message = _message_label()
        layout.addWidget(self.edit_message)

        # Pagination
        pager = QHBoxLayout()
        self.btn_first = QPushButton("« First")
        self.btn_prev = QPushButton("‹ Prev")
        self.btn_next = QPushButton("Next ›")
        self.btn_last = QPushButton("Last »")
        self.btn_first.clicked.connect(lambda: self._adapter.navigate(PageMove.FIRST))
        self.btn_prev.clicked.connect(lambda: self._adapter.navigate(PageMove.PREVIOUS))
        self.btn_next.clicked.connect(lambda: self._adapter.navigate(PageMove.NEXT))
        self.btn_last.clicked.connect(lambda: self._adapter.navigate(PageMove.LAST))

        self.page_label = QLabel("Page 1 of 1")

        self.page_size_combo = QComboBox()
        for size in PAGE_SIZE_CHOICES:
            self.page_size_combo.addItem(str(size), size)
        self._select_page_size(page_size)
        self.page_size_combo.currentIndexChanged.connect(self._on_page_size_changed)

        pager.addWidget(self.btn_first)
        pager.addWidget(self.btn_prev)
        pager.addWidget(self.page_label)
        pager.addWidget(self.btn_next)
        pager.addWidget(self.btn_last)
        pager.addStretch(1)
        pager.addWidget(QLabel("Rows per page:"))
        pager.addWidget(self.page_size_combo)
        layout.addLayout(pager)

        # Actions
        actions = QHBoxLayout()
        self.btn_insert = QPushButton("Insert document…")
        self.btn_insert.clicked.connect(self._insert_document)
        self.btn_delete = QPushButton("Delete selected")
        self.btn_delete.clicked.connect(self._delete_selected)
        actions.addWidget(self.btn_insert)
        actions.addWidget(self.btn_delete)
        actions.addStretch(1)
        layout.addLayout(actions)

        self.action_message = _message_label()
        layout.addWidget(self.action_message)

        self._message_labels = {
            MessageSlot.COLLECTIONS: self.collections_message,
            MessageSlot.FETCH: self.fetch_message,
            MessageSlot.FILTER: self.filter_message,
            MessageSlot.EDIT: self.edit_message,
            MessageSlot.ACTION: self.action_message,
        }

        self._adapter.snapshot_changed.connect(self._on_snapshot)
        self._adapter.confirm_delete_requested.connect(self._on_confirm_delete)
        self._adapter.edit_rejected.connect(self._on_edit_rejected)

        self._sync_controls(None)

    def shutdown(self) -> None:
        self._adapter.shutdown()

    # ---------- user actions ----------
    def _apply_filter(self) -> None:
        self._adapter.apply_filter(self.filter_edit.text())

    def _on_page_size_changed(self, _index: int) -> None:
        size = self.page_size_combo.currentData()
        if isinstance(size, int):
            self._adapter.set_page_size(size)

    def _insert_document(self) -> None:
        snap = self._snapshot
        if snap is None or snap.collection is None:
            return
        dlg = DocumentEditorDialog(self, collection=snap.collection)
        if dlg.exec() != DocumentEditorDialog.Accepted:
            return
        result = dlg.result_value()
        if result is not None:
            self._adapter.insert_document(result.text)

    def _delete_selected(self) -> None:
        rows = self.table.selectionModel().selectedRows()
        if not rows:
            QMessageBox.information(self, "Delete", "Select a row to delete.")
            return
        self._adapter.delete_row(rows[0].row())

    def _on_confirm_delete(self, record: Record, future: Future) -> None:
        if future.done():
            return
        answer = QMessageBox.question(
            self,
            "Delete document",
            f"Delete document {format_value(record.get(ID_FIELD))}?\n\nThis cannot be undone.",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if not future.done():
            future.set_result(answer == QMessageBox.Yes)

    def _on_edit_rejected(self, message: str) -> None:
        _show_message(self.edit_message, InlineMessage(level=MessageLevel.WARNING, text=message))

    def _on_editor_closed(self, _editor: QWidget, _hint) -> None:
        if self._snapshot is not None:
            self._render(self._snapshot)

    # ---------- rendering ----------
    def _on_snapshot(self, snap: GridSnapshot) -> None:
        self._snapshot = snap
        self._render(snap)

    def _render(self, snap: GridSnapshot) -> None:
        self._sync_collections(snap)
        self._sync_controls(snap)
        for slot, label in self._message_labels.items():
            _show_message(label, snap.message(slot))

        if self.table.state() == QAbstractItemView.EditingState:
            return
        shown = self._rendered
        if shown is not None and snap.revision == shown.revision and snap.columns == shown.columns:
            return
        self._render_table(snap)

    def _render_table(self, snap: GridSnapshot) -> None:
        self._rendered = snap

        self.table.clear()
        self.table.setColumnCount(len(snap.columns))
        self.table.setRowCount(len(snap.rows))
        self.table.setHorizontalHeaderLabels(list(snap.columns))

        for r, row in enumerate(snap.rows):
            for c, text in enumerate(row):
                item = QTableWidgetItem(text.replace("\n", " "))
                item.setToolTip(text)
                if snap.columns[c] == ID_FIELD:
                    item.setFlags(item.flags() & ~Qt.ItemIsEditable)
                    item.setForeground(QBrush(QColor("#888")))
                self.table.setItem(r, c, item)

        self.table.resizeColumnsToContents()

    def _sync_collections(self, snap: GridSnapshot) -> None:
        names = [self.collection_combo.itemText(i) for i in range(self.collection_combo.count())]
        if tuple(names) != snap.collections:
            self.collection_combo.blockSignals(True)
            self.collection_combo.clear()
            self.collection_combo.addItems(list(snap.collections))
            self.collection_combo.blockSignals(False)
        if snap.collection is not None and self.collection_combo.currentText() != snap.collection:
            self.collection_combo.blockSignals(True)
            self.collection_combo.setCurrentText(snap.collection)
            self.collection_combo.blockSignals(False)

        if snap.filter_text != self.filter_edit.text().strip() and snap.message(MessageSlot.FILTER) is None:
            self.filter_edit.setText(snap.filter_text)

    def _sync_controls(self, snap: GridSnapshot | None) -> None:
        has_collection = snap is not None and snap.collection is not None
        window = None if snap is None else snap.window

        if snap is None or not has_collection:
            self.status_label.setText("No collection selected.")
        elif snap.waiting_for_host:
            self.status_label.setText("Waiting for the database to become ready…")
        elif snap.loading:
            self.status_label.setText(f"Loading {snap.collection}…")
        else:
            self.status_label.setText(f"{snap.collection}: {window.total} documents")

        if window is None:
            self.page_label.setText("Page 1 of 1")
        else:
            self.page_label.setText(f"Page {window.page} of {window.page_count}")
            self._select_page_size(window.page_size)

        at_first = window is None or window.page <= 1
        at_last = window is None or window.page >= window.page_count
        self.btn_first.setEnabled(not at_first)
        self.btn_prev.setEnabled(not at_first)
        self.btn_next.setEnabled(not at_last)
        self.btn_last.setEnabled(not at_last)

        self.btn_refresh.setEnabled(has_collection)
        self.btn_insert.setEnabled(has_collection)
        self.btn_delete.setEnabled(has_collection and bool(snap.rows))

    def _select_page_size(self, size: int) -> None:
        self.page_size_combo.blockSignals(True)
        for i in range(self.page_size_combo.count()):
            if self.page_size_combo.itemData(i) == size:
                self.page_size_combo.setCurrentIndex(i)
                break
        self.page_size_combo.blockSignals(False)

"""
Setup tab (engine-backed).

Purpose
-------
- Show whether the database engine is installed and connected.
- Install the engine, streaming progress into a bounded log view.
- Open and close the connection.
"""

from __future__ import annotations

from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from grid_engine.host import ConnectionState, HostSnapshot
from gui.adapters.host_adapter import HostAdapter

_STATE_TEXT = {
    ConnectionState.UNKNOWN: "Checking installation…",
    ConnectionState.NOT_INSTALLED: "Database engine is not installed.",
    ConnectionState.INSTALLING: "Installing database engine…",
    ConnectionState.DISCONNECTED: "Installed, not connected.",
    ConnectionState.CONNECTING: "Connecting…",
    ConnectionState.CONNECTED: "Connected.",
    ConnectionState.FAILED: "Failed.",
}


def _mono() -> QFont:
    f = QFont("Consolas")
    f.setStyleHint(QFont.Monospace)
    return f


class SetupTab(QWidget):
    """Installation and connection controls."""

    def __init__(self, adapter: HostAdapter, *, connection_string: str) -> None:
        super().__init__()
        self._adapter = adapter

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)

        # Status
        status_box = QGroupBox("Database engine")
        status_layout = QVBoxLayout(status_box)

        self.state_label = QLabel(_STATE_TEXT[ConnectionState.UNKNOWN])
        f = self.state_label.font()
        f.setBold(True)
        self.state_label.setFont(f)
        status_layout.addWidget(self.state_label)

        self.error_label = QLabel("")
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: #c62828;")
        self.error_label.setVisible(False)
        status_layout.addWidget(self.error_label)

        row = QHBoxLayout()
        self.btn_check = QPushButton("Check installation")
        self.btn_check.clicked.connect(lambda: self._adapter.check_installation())
        self.btn_install = QPushButton("Install")
        self.btn_install.clicked.connect(lambda: self._adapter.install())
        row.addWidget(self.btn_check)
        row.addWidget(self.btn_install)
        row.addStretch(1)
        status_layout.addLayout(row)

        layout.addWidget(status_box)

        # Connection
        conn_box = QGroupBox("Connection")
        conn_layout = QHBoxLayout(conn_box)

        self.connection_edit = QLineEdit()
        self.connection_edit.setFont(_mono())
        self.connection_edit.setText(connection_string)
        self.connection_edit.setPlaceholderText("mongodb://localhost:27017")

        self.btn_connect = QPushButton("Connect")
        self.btn_connect.clicked.connect(self._connect)
        self.btn_disconnect = QPushButton("Disconnect")
        self.btn_disconnect.clicked.connect(lambda: self._adapter.disconnect_from())

        conn_layout.addWidget(QLabel("Connection string:"))
        conn_layout.addWidget(self.connection_edit, 1)
        conn_layout.addWidget(self.btn_connect)
        conn_layout.addWidget(self.btn_disconnect)

        layout.addWidget(conn_box)

        # Install log
        log_box = QGroupBox("Install log")
        log_layout = QVBoxLayout(log_box)

        self.step_label = QLabel("")
        log_layout.addWidget(self.step_label)

        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setValue(0)
        self.progress.setVisible(False)
        log_layout.addWidget(self.progress)

        self.log_view = QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setFont(_mono())
        log_layout.addWidget(self.log_view, 1)

        layout.addWidget(log_box, 1)

        self._adapter.state_changed.connect(self._on_state)
        self._sync_buttons(ConnectionState.UNKNOWN)

    def _connect(self) -> None:
        text = self.connection_edit.text().strip()
        if text:
            self._adapter.connect_to(text)

    def _on_state(self, snap: HostSnapshot) -> None:
        self.state_label.setText(_STATE_TEXT[snap.state])
        self.error_label.setText(snap.error or "")
        self.error_label.setVisible(bool(snap.error))

        if snap.current_step is not None and snap.current_step.total_steps:
            step = snap.current_step
            self.step_label.setText(f"Step {step.step} of {step.total_steps}: {step.message}")
        else:
            self.step_label.setText("")

        if snap.download is not None:
            self.progress.setVisible(True)
            self.progress.setValue(int(snap.download.percentage))
        else:
            self.progress.setVisible(False)

        text = "\n".join(snap.log_lines)
        if self.log_view.toPlainText() != text:
            self.log_view.setPlainText(text)
            bar = self.log_view.verticalScrollBar()
            bar.setValue(bar.maximum())

        self._sync_buttons(snap.state)

    def _sync_buttons(self, state: ConnectionState) -> None:
        busy = state in (ConnectionState.INSTALLING, ConnectionState.CONNECTING)
        self.btn_check.setEnabled(not busy)
        self.btn_install.setEnabled(state in (ConnectionState.NOT_INSTALLED, ConnectionState.FAILED))
        self.btn_connect.setEnabled(
            state in (ConnectionState.DISCONNECTED, ConnectionState.FAILED)
        )
        self.btn_disconnect.setEnabled(state is ConnectionState.CONNECTED)

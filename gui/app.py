"""
DocDesk GUI app.

Tabbed GUI backed by the grid engine (connection manager, grid orchestrator).
"""

from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication, QHBoxLayout, QLabel, QTabWidget, QVBoxLayout, QWidget

from grid_engine.documents import Record
from grid_engine.logging_config import get_logger, setup_logging
from grid_engine.memory_service import (
    InMemoryDocumentService,
    SimulatedEngineHost,
    load_collections_file,
)
from gui.adapters.event_loop import LoopThread
from gui.adapters.grid_adapter import GridAdapter
from gui.adapters.host_adapter import HostAdapter
from gui.settings_store import GuiSettings, load_gui_settings
from gui.tabs.browse_tab import BrowseTab
from gui.tabs.settings_tab import SettingsTab
from gui.tabs.setup_tab import SetupTab


def demo_collections() -> dict[str, list[Record]]:
    """Seed documents shown when no data file is given."""
    return {
        "users": [
            {"_id": {"$oid": "65a1f0c2e4b0a1b2c3d4e5f1"}, "name": "Bob", "age": 30},
            {"_id": {"$oid": "65a1f0c2e4b0a1b2c3d4e5f2"}, "name": "Ada", "age": 36,
             "tags": ["admin", "ops"]},
            {"_id": {"$oid": "65a1f0c2e4b0a1b2c3d4e5f3"}, "name": "Lin", "active": False},
            {"_id": {"$oid": "65a1f0c2e4b0a1b2c3d4e5f4"}, "name": "Mo",
             "address": {"city": "Oslo", "zip": "0150"}},
        ],
        "orders": [
            {"_id": 1001, "item": "keyboard", "qty": 2, "price": 49.5},
            {"_id": 1002, "item": "monitor", "qty": 1, "price": 189.0, "note": None},
        ],
    }


class AppWindow(QWidget):
    """
    Main window for the DocDesk GUI.

    Responsibilities
    ----------------
    - Host the primary tabbed interface (Setup, Browse, Settings)
    - Own the engine loop thread and coordinate clean shutdown
    """

    def __init__(self, settings: GuiSettings, service: InMemoryDocumentService) -> None:
        """
        Initialize the main window and construct the tab layout.

        Parameters
        ----------
        settings:
            Loaded GUI settings.
        service:
            Document service shared by the host and the grid.
        """
        super().__init__()
        self.setWindowTitle("DocDesk")
        self.resize(1180, 720)

        self._loop = LoopThread()
        host = SimulatedEngineHost(service, step_delay=0.3)
        self.host_adapter = HostAdapter(host, self._loop, log_capacity=settings.log_capacity)
        self.grid_adapter = GridAdapter(
            service,
            self._loop,
            page_size=settings.page_size,
            retry_delay=settings.retry_delay,
        )

        root = QVBoxLayout(self)
        root.setContentsMargins(8, 8, 8, 8)

        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(8, 8, 8, 8)

        title = QLabel("DocDesk")
        f = title.font()
        f.setPointSize(16)
        f.setBold(True)
        title.setFont(f)

        subtitle = QLabel(f"Document browser · database {settings.database_name}")
        subtitle.setStyleSheet("color: #666;")

        header_layout.addWidget(title)
        header_layout.addSpacing(10)
        header_layout.addWidget(subtitle)
        header_layout.addStretch(1)

        root.addWidget(header)

        tabs = QTabWidget()

        self.setup_tab = SetupTab(self.host_adapter, connection_string=settings.connection_string)
        tabs.addTab(self.setup_tab, "Setup")

        self.browse_tab = BrowseTab(self.grid_adapter, page_size=settings.page_size)
        tabs.addTab(self.browse_tab, "Browse")

        self.settings_tab = SettingsTab()
        tabs.addTab(self.settings_tab, "Settings")

        root.addWidget(tabs, 1)

        self.host_adapter.connected.connect(lambda: self.grid_adapter.load_collections())
        self.host_adapter.connected.connect(lambda: tabs.setCurrentWidget(self.browse_tab))

        self.host_adapter.startup(
            auto_connect=settings.auto_connect,
            connection_string=settings.connection_string,
        )
        # Loads retry until the connection is up.
        self.grid_adapter.load_collections()

    def closeEvent(self, event) -> None:  # type: ignore[override]
        """
        Handle window close by shutting down the engine loop.

        Parameters
        ----------
        event:
            Qt close event.
        """
        try:
            if hasattr(self, "browse_tab"):
                self.browse_tab.shutdown()
        finally:
            self._loop.stop()
            super().closeEvent(event)


def main(data_path: Path | None = None) -> int:
    """
    Run the DocDesk GUI application.

    Parameters
    ----------
    data_path:
        Optional JSON file of collections to browse instead of the demo data.

    Returns
    -------
    int
        Qt application exit code.
    """
    settings = load_gui_settings(data_root=None)
    setup_logging(level=settings.log_level, fmt=settings.log_format)

    collections = demo_collections() if data_path is None else load_collections_file(data_path)
    service = InMemoryDocumentService(collections, connected=False)
    get_logger("gui").info("gui_starting", collections=len(collections))

    app = QApplication(sys.argv)
    w = AppWindow(settings, service)
    w.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())

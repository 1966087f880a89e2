from __future__ import annotations

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from gui.settings_store import (
    LOG_FORMATS,
    LOG_LEVELS,
    PAGE_SIZE_CHOICES,
    GuiSettings,
    load_gui_settings,
    save_gui_settings,
)


class SettingsTab(QWidget):
    """
    Settings tab for DocDesk.

    Responsibilities
    ----------------
    - Configure session defaults (connection string, page size, retry delay).
    - Persist settings to disk in a small JSON file under the data root.

    Notes
    -----
    Saved values apply the next time the application starts.
    """

    def __init__(self) -> None:
        super().__init__()

        self._settings = load_gui_settings(data_root=None)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)

        box = QGroupBox("Defaults")
        box_layout = QVBoxLayout(box)

        # Connection
        self.connection_edit = QLineEdit()
        self.connection_edit.setPlaceholderText("mongodb://localhost:27017")

        row = QHBoxLayout()
        row.addWidget(QLabel("Connection string:"))
        row.addWidget(self.connection_edit, 1)
        box_layout.addLayout(row)

        self.database_edit = QLineEdit()

        row2 = QHBoxLayout()
        row2.addWidget(QLabel("Database name:"))
        row2.addWidget(self.database_edit, 1)
        box_layout.addLayout(row2)

        self.auto_connect_check = QCheckBox("Connect automatically on startup")
        box_layout.addWidget(self.auto_connect_check)

        # Grid
        self.page_size_combo = QComboBox()
        for size in PAGE_SIZE_CHOICES:
            self.page_size_combo.addItem(str(size), size)

        row3 = QHBoxLayout()
        row3.addWidget(QLabel("Rows per page:"))
        row3.addWidget(self.page_size_combo, 1)
        box_layout.addLayout(row3)

        self.retry_spin = QSpinBox()
        self.retry_spin.setRange(100, 60_000)
        self.retry_spin.setSingleStep(100)
        self.retry_spin.setSuffix(" ms")

        row4 = QHBoxLayout()
        row4.addWidget(QLabel("Retry delay while connecting:"))
        row4.addWidget(self.retry_spin, 1)
        box_layout.addLayout(row4)

        self.log_capacity_spin = QSpinBox()
        self.log_capacity_spin.setRange(50, 10_000)
        self.log_capacity_spin.setSingleStep(50)

        row5 = QHBoxLayout()
        row5.addWidget(QLabel("Install log lines kept:"))
        row5.addWidget(self.log_capacity_spin, 1)
        box_layout.addLayout(row5)

        # Diagnostics
        self.log_level_combo = QComboBox()
        for level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            self.log_level_combo.addItem(level, level)

        self.log_format_combo = QComboBox()
        self.log_format_combo.addItem("Console", "console")
        self.log_format_combo.addItem("JSON lines", "json")

        row6 = QHBoxLayout()
        row6.addWidget(QLabel("Log level:"))
        row6.addWidget(self.log_level_combo, 1)
        row6.addWidget(QLabel("Log format:"))
        row6.addWidget(self.log_format_combo, 1)
        box_layout.addLayout(row6)

        btn_save = QPushButton("Save Settings")
        btn_save.clicked.connect(self._save)
        box_layout.addWidget(btn_save)

        layout.addWidget(box)
        layout.addStretch(1)

        self._load_into_widgets()

    def _load_into_widgets(self) -> None:
        s = self._settings
        self.connection_edit.setText(s.connection_string)
        self.database_edit.setText(s.database_name)
        self.auto_connect_check.setChecked(s.auto_connect)
        self.retry_spin.setValue(s.retry_delay_ms)
        self.log_capacity_spin.setValue(s.log_capacity)

        self._select_combo_by_data(self.page_size_combo, s.page_size)
        self._select_combo_by_data(self.log_level_combo, s.log_level)
        self._select_combo_by_data(self.log_format_combo, s.log_format)

    @staticmethod
    def _select_combo_by_data(combo: QComboBox, value: object) -> None:
        for i in range(combo.count()):
            if combo.itemData(i) == value:
                combo.setCurrentIndex(i)
                return

    def _save(self) -> None:
        defaults = GuiSettings.defaults()
        log_level = str(self.log_level_combo.currentData())
        log_format = str(self.log_format_combo.currentData())

        settings = GuiSettings(
            connection_string=self.connection_edit.text().strip() or defaults.connection_string,
            database_name=self.database_edit.text().strip() or defaults.database_name,
            page_size=int(self.page_size_combo.currentData()),
            retry_delay_ms=self.retry_spin.value(),
            log_capacity=self.log_capacity_spin.value(),
            auto_connect=self.auto_connect_check.isChecked(),
            log_level=log_level if log_level in LOG_LEVELS else defaults.log_level,
            log_format=log_format if log_format in LOG_FORMATS else defaults.log_format,
        )

        try:
            save_gui_settings(data_root=None, settings=settings)
        except OSError as exc:
            QMessageBox.critical(self, "Settings", f"Failed to save settings: {exc}")
            return

        self._settings = settings
        QMessageBox.information(self, "Settings", "Saved. Changes apply after a restart.")

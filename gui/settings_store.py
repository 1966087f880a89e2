from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from grid_engine.host import DEFAULT_CONNECTION_STRING
from grid_engine.install_log import DEFAULT_LOG_CAPACITY
from grid_engine.orchestrator import DEFAULT_PAGE_SIZE
from grid_engine.paths import settings_path

PAGE_SIZE_CHOICES: tuple[int, ...] = (5, 10, 25, 50, 100)
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}
LOG_FORMATS = {"console", "json"}


@dataclass(frozen=True, slots=True)
class GuiSettings:
    """
    Persisted GUI settings.

    Notes
    -----
    These settings only control defaults for a new session. The open
    collection, page and filter are not persisted.
    """

    connection_string: str
    database_name: str
    page_size: int
    retry_delay_ms: int
    log_capacity: int
    auto_connect: bool
    log_level: str  # "DEBUG" | "INFO" | "WARNING" | "ERROR"
    log_format: str  # "console" | "json"

    @staticmethod
    def defaults() -> "GuiSettings":
        return GuiSettings(
            connection_string=DEFAULT_CONNECTION_STRING,
            database_name="app_database",
            page_size=DEFAULT_PAGE_SIZE,
            retry_delay_ms=1000,
            log_capacity=DEFAULT_LOG_CAPACITY,
            auto_connect=True,
            log_level="INFO",
            log_format="console",
        )

    @property
    def retry_delay(self) -> float:
        """Retry delay in seconds."""
        return self.retry_delay_ms / 1000.0


def _positive_int(value: object, fallback: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return fallback
    return value


def load_gui_settings(*, data_root: Path | None) -> GuiSettings:
    """
    Load GUI settings from disk.

    Parameters
    ----------
    data_root:
        Data root. If None, the default is used.

    Returns
    -------
    GuiSettings
        Loaded settings, or defaults if missing/unreadable. Invalid values
        fall back to their defaults one by one.
    """
    defaults = GuiSettings.defaults()
    path = settings_path(data_root)
    try:
        raw = path.read_text(encoding="utf-8")
        payload = json.loads(raw)
    except (OSError, ValueError):
        return defaults
    if not isinstance(payload, dict):
        return defaults

    connection_string = payload.get("connection_string", defaults.connection_string)
    if not isinstance(connection_string, str) or not connection_string.strip():
        connection_string = defaults.connection_string

    database_name = payload.get("database_name", defaults.database_name)
    if not isinstance(database_name, str) or not database_name.strip():
        database_name = defaults.database_name

    page_size = payload.get("page_size", defaults.page_size)
    if page_size not in PAGE_SIZE_CHOICES:
        page_size = defaults.page_size

    auto_connect = payload.get("auto_connect", defaults.auto_connect)
    if not isinstance(auto_connect, bool):
        auto_connect = defaults.auto_connect

    log_level = str(payload.get("log_level", defaults.log_level)).upper()
    if log_level not in LOG_LEVELS:
        log_level = defaults.log_level

    log_format = payload.get("log_format", defaults.log_format)
    if log_format not in LOG_FORMATS:
        log_format = defaults.log_format

    return GuiSettings(
        connection_string=connection_string.strip(),
        database_name=database_name.strip(),
        page_size=int(page_size),
        retry_delay_ms=_positive_int(payload.get("retry_delay_ms"), defaults.retry_delay_ms),
        log_capacity=_positive_int(payload.get("log_capacity"), defaults.log_capacity),
        auto_connect=auto_connect,
        log_level=log_level,
        log_format=str(log_format),
    )


def save_gui_settings(*, data_root: Path | None, settings: GuiSettings) -> None:
    """
    Save GUI settings to disk.

    Parameters
    ----------
    data_root:
        Data root. If None, the default is used.
    settings:
        Settings to persist.
    """
    path = settings_path(data_root)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "connection_string": settings.connection_string,
        "database_name": settings.database_name,
        "page_size": settings.page_size,
        "retry_delay_ms": settings.retry_delay_ms,
        "log_capacity": settings.log_capacity,
        "auto_connect": settings.auto_connect,
        "log_level": settings.log_level,
        "log_format": settings.log_format,
    }
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

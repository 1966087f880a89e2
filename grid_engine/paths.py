"""
Filesystem locations for DocDesk runtime data.

The desktop front-end keeps only small files here (GUI settings). Nothing in
this module creates directories; callers do that when they write.
"""

from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "docdesk"
SETTINGS_FILE_NAME = "gui_settings.json"


def default_data_root() -> Path:
    """
    Resolve the default DocDesk data root.

    Preference order:
    1) %DOCDESK_DATA_ROOT% if set
    2) %LOCALAPPDATA% (Windows)
    3) %APPDATA% (Windows, Roaming) as fallback
    4) $XDG_DATA_HOME, then ~/.local/share
    """
    override = os.environ.get("DOCDESK_DATA_ROOT")
    if override:
        return Path(override)

    local = os.environ.get("LOCALAPPDATA")
    if local:
        return Path(local) / APP_DIR_NAME

    roaming = os.environ.get("APPDATA")
    if roaming:
        return Path(roaming) / APP_DIR_NAME

    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME

    return Path.home() / ".local" / "share" / APP_DIR_NAME


def settings_path(data_root: Path | None = None) -> Path:
    """
    Return the GUI settings file location.

    Parameters
    ----------
    data_root:
        Optional override for the data root. If None, the default is used.

    Returns
    -------
    Path
        Path of the JSON settings file.
    """
    root = default_data_root() if data_root is None else data_root
    return root / SETTINGS_FILE_NAME

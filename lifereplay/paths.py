from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "LifeReplay"
DATA_DIR_ENV = "LIFEREPLAY_DATA_DIR"


def data_directory() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    local_appdata = os.environ.get("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME


def database_path() -> Path:
    return data_directory() / "lifereplay.sqlite3"


def renders_directory() -> Path:
    return data_directory() / "renders"


def ensure_directories() -> None:
    renders_directory().mkdir(parents=True, exist_ok=True)

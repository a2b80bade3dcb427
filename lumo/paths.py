"""
Where Lumo keeps its files.

Saved boards live under db/<canvas>/ (one folder of Lume and link JSON files
per canvas) and settings in config.json. Both sit beside the project root,
or beside the executable in a PyInstaller build so a packaged app keeps its
boards between upgrades.
"""

import os
import sys
from pathlib import Path

DB_DIR_ENV = "LUMO_DB_DIR"


def get_app_dir() -> Path:
    """Project root (the folder holding lumo/), or the executable's folder when frozen."""
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).resolve().parent.parent


def get_db_dir() -> Path:
    """Folder of saved canvases; LUMO_DB_DIR points it elsewhere, e.g. at a synced drive."""
    override = os.environ.get(DB_DIR_ENV)
    return Path(override) if override else get_app_dir() / "db"


def get_config_path() -> Path:
    return get_app_dir() / "config.json"


def ensure_db_dir() -> Path:
    """Create the canvas folder on first run and return it."""
    db_dir = get_db_dir()
    db_dir.mkdir(parents=True, exist_ok=True)
    return db_dir

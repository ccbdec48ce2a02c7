"""
Per-user directories for planner documents, assets and settings.
"""
import os
import sys
from pathlib import Path
from typing import Optional, Union

APP_NAME = "InkPlanner"


def _platform_base(kind: str) -> Path:
    """Base directory for ``kind`` ("data" or "config") on this platform."""
    if os.name == 'nt':  # Windows
        return Path(os.environ.get('APPDATA', os.path.expanduser('~')))
    if sys.platform == 'darwin':  # macOS
        if kind == "config":
            return Path.home() / "Library" / "Preferences"
        return Path.home() / "Library" / "Application Support"

    # Linux and others
    if kind == "config":
        return Path(os.environ.get('XDG_CONFIG_HOME', str(Path.home() / ".config")))
    return Path(os.environ.get('XDG_DATA_HOME', str(Path.home() / ".local" / "share")))


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_app_data_dir(app_name: str = APP_NAME) -> Path:
    """
    Directory documents are stored under.

    Args:
        app_name: Name of the application

    Returns:
        Path to the app data directory, created if missing
    """
    return _ensure(_platform_base("data") / app_name)


def get_config_dir(app_name: str = APP_NAME) -> Path:
    """
    Directory holding ``config.json``.

    On Windows this is a ``config`` folder inside the app data directory.
    """
    if os.name == 'nt':
        return _ensure(get_app_data_dir(app_name) / "config")
    return _ensure(_platform_base("config") / app_name)


def get_asset_dir(data_dir: Optional[Union[str, Path]] = None) -> Path:
    """Directory rendered page images are written to: ``assets`` next to the documents."""
    base = Path(data_dir) if data_dir else get_app_data_dir() / "documents"
    return _ensure(base / "assets")

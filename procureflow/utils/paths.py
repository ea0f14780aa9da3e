"""File path resolution using platformdirs.

In dev mode, paths resolve relative to the project root. When the
PROCUREFLOW_DATA_DIR override is set, that directory wins. Installed
deployments fall back to the platform user data dir:
  macOS: ~/Library/Application Support/procureflow/
  Linux: ~/.local/share/procureflow/
"""

import os
from pathlib import Path

import platformdirs

APP_NAME = "procureflow"
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _is_source_checkout() -> bool:
    """Return True when running from a source checkout (pyproject at root)."""
    return (_PROJECT_ROOT / "pyproject.toml").is_file()


def get_data_dir() -> Path:
    """Return the directory for persistent data (the conversation DB)."""
    override = os.environ.get("PROCUREFLOW_DATA_DIR", "").strip()
    if override:
        return Path(override)
    if _is_source_checkout():
        return _PROJECT_ROOT
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_default_db_path() -> Path:
    """Return the default SQLite database file path."""
    return get_data_dir() / "procureflow.db"

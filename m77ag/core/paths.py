"""
m77ag/core/paths.py - Data Directory Resolution

Every module asks here for the directory holding the SQLite files instead of
computing its own.
"""

import os
import logging

from .config import get_setting

log = logging.getLogger("m77ag.paths")

_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))
DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "databases")


def resolve_data_dir(override: str = None) -> str:
    """Return the data directory, creating it if it doesn't exist.

    Priority: explicit override → M77_DATA_DIR env → <project>/databases
    """
    data_dir = override or get_setting("data_dir") or DEFAULT_DATA_DIR
    if not os.path.isdir(data_dir):
        os.makedirs(data_dir, exist_ok=True)
        log.info("Created data directory %s", data_dir)
    return data_dir


def db_path(data_dir: str, filename: str = None) -> str:
    return os.path.join(data_dir, filename or get_setting("db_file"))

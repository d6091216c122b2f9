"""
Helper utilities for L2Toolbox.

This module provides foundational functions for locating the per-user
configuration directory and naming the files kept beside the settings file.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from platformdirs import user_config_path

from l2toolbox import constants


def get_config_dir_path() -> Path:
    """Returns the per-user configuration directory for this platform, without creating it."""
    return user_config_path(constants.app.APP_NAME, appauthor=False)


def get_app_data_path() -> Path:
    """
    Retrieve the per-user configuration directory, creating it if it is absent.
    """
    logger: logging.Logger = logging.getLogger(__name__)
    path: Path = get_config_dir_path()
    try:
        path.mkdir(parents=True, exist_ok=True)
        # Unique name to avoid collisions between processes
        test_file = path / f".l2t_write_test_{os.getpid()}"
        with open(test_file, 'w') as f:
            f.write("test")
        test_file.unlink()
        logger.debug("App data path ensured and writable: %s", path)
        return path
    except PermissionError as e:
        logger.error("Permission denied creating/writing to app data directory %s: %s", path, e)
        raise PermissionError(f"Cannot access app data directory: {path}. Please check permissions.") from e
    except OSError as e:
        logger.error("Failed to create or verify app data directory %s: %s", path, e)
        raise OSError(f"Error with app data directory: {path}. Check disk space or path validity.") from e


def backup_path_for(path: Path, now: Optional[datetime] = None) -> Path:
    """Returns `<name>_<YYYYMMDD_HHMMSS>.bak` next to `path`."""
    stamp = (now or datetime.now()).strftime(constants.config.defaults.BACKUP_TIMESTAMP_FORMAT)
    return path.with_name(f"{path.name}_{stamp}{constants.config.defaults.BACKUP_SUFFIX}")


def temp_path_for(path: Path) -> Path:
    """Returns the temporary sibling used while saving `path`."""
    return path.with_name(f"{path.name}{constants.config.defaults.TEMP_SUFFIX}")

"""
Utilities submodule for L2Toolbox.

Provides helper functions and configuration management.
"""

from .config import ConfigError, ConfigManager, Settings
from .helpers import get_app_data_path, get_config_dir_path

__all__ = ["ConfigError", "ConfigManager", "Settings", "get_app_data_path", "get_config_dir_path"]

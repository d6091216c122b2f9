"""
Provides centralized, immutable constants for the L2Toolbox application.

This package exposes singleton instances of constant groups, ensuring they
are validated on import and easily accessible from a single namespace.

Usage:
    from l2toolbox import constants

    # Access application metadata
    print(constants.app.APP_NAME)

    # Access a default configuration value
    language = constants.config.defaults.DEFAULT_LANGUAGE

    # Access the key every locale resource must define
    key = constants.i18n.LANGUAGE_NAME_KEY
"""

from .app import app
from .config import config
from .i18n import i18n
from .logs import logs

__all__ = [
    "app",
    "config",
    "i18n",
    "logs",
]

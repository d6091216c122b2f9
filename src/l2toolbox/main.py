"""
Application entry point for L2Toolbox.
"""

import logging
import sys

from l2toolbox import constants
from l2toolbox.core.controller import AppController
from l2toolbox.core.translations import TranslationError
from l2toolbox.utils.config import ConfigError, ConfigManager


def main() -> int:
    """
    Main entry point for L2Toolbox.

    Orchestrates the startup sequence:
    1. Sets up logging.
    2. Loads (or creates) the configuration.
    3. Initializes translations with the user's chosen language.

    Returns:
        An integer exit code.
    """
    # 1. Set up logging first so that any subsequent errors are recorded.
    ConfigManager.setup_logging()
    logger = logging.getLogger(f"{constants.app.APP_NAME}.Main")
    logger.info("Starting %s %s", constants.app.APP_NAME, constants.app.VERSION)

    try:
        # 2 + 3. Settings first, then the translator for the configured language.
        controller = AppController(ConfigManager())
        controller.initialize()
        languages = controller.available_languages()
    except ConfigError as e:
        logger.critical("Failed to load configuration file: %s", e, exc_info=True)
        return 1
    except TranslationError as e:
        logger.critical("No usable UI language: %s", e, exc_info=True)
        return 1

    logger.info("Effective language: %s (%s)", controller.settings.language, controller.selected_language_label(languages))
    logger.info("Available languages: %s", ", ".join(f"{locale} ({name})" for locale, name in languages))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Application controller for L2Toolbox.

Bridges the view layer and the two core services: it loads the settings at
startup, builds the translator for the configured language, rebuilds it when the
user picks another language, and saves the settings on request.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from l2toolbox import constants
from l2toolbox.core.locale_id import LocaleId
from l2toolbox.core.translations import TranslationError, Translator, get_translations_path, list_available_locales
from l2toolbox.utils.config import ConfigManager, Settings


class AppController:
    """
    Owns the in-memory settings record and the active translator.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        resource_dir: Optional[Path] = None,
        fallback_locale: Union[LocaleId, str] = constants.i18n.FALLBACK_LOCALE,
    ) -> None:
        self.config_manager = config_manager
        self.resource_dir = Path(resource_dir) if resource_dir is not None else get_translations_path()
        self.fallback_locale = fallback_locale
        self.settings: Optional[Settings] = None
        self.translator: Optional[Translator] = None
        self.logger = logging.getLogger(f"{constants.app.APP_NAME}.AppController")

    def initialize(self) -> None:
        """
        Loads (or creates) the settings and builds the translator for their language.

        Raises:
            ConfigError: If the settings cannot be made available.
            TranslationError: If the configured or fallback language cannot be loaded.
        """
        self.logger.debug("Loading initial configuration...")
        settings = self.config_manager.load_or_create()
        self.translator = self._build_translator(settings.language)
        self.settings = settings

    def _build_translator(self, locale: LocaleId) -> Translator:
        return Translator.initialize(locale, fallback_locale=self.fallback_locale, resource_dir=self.resource_dir)

    def _require_ready(self) -> Tuple[Settings, Translator]:
        if self.settings is None or self.translator is None:
            raise RuntimeError("AppController used before initialize().")
        return self.settings, self.translator

    def text(self, key: str, args: Optional[Dict[str, Any]] = None) -> str:
        """Resolves a message key with the active translator."""
        _, translator = self._require_ready()
        return translator.resolve(key, args)

    def available_languages(self) -> List[Tuple[LocaleId, str]]:
        """Lists the languages offered in the language picker."""
        return list_available_locales(self.resource_dir)

    def selected_language_label(self, languages: Optional[List[Tuple[LocaleId, str]]] = None) -> Optional[str]:
        """Returns the display name of the configured language, or None if it is not available."""
        settings, _ = self._require_ready()
        if languages is None:
            languages = self.available_languages()
        return next((label for locale, label in languages if locale == settings.language), None)

    def select_language(self, locale: Union[LocaleId, str], save_to_disk: bool = False) -> None:
        """
        Switches the UI language. The previous translator and settings are kept if the
        new language cannot be loaded.

        Raises:
            TranslationError: If the language resources cannot be loaded.
            ConfigError: If `save_to_disk` is set and saving fails.
        """
        settings, _ = self._require_ready()
        locale = locale if isinstance(locale, LocaleId) else LocaleId.parse(locale)
        self.logger.debug("Switching language to %s (save: %s)", locale, save_to_disk)

        try:
            translator = self._build_translator(locale)
        except TranslationError:
            self.logger.warning("Keeping language %s; %s could not be loaded.", settings.language, locale)
            raise

        self.translator = translator
        settings.language = locale
        if save_to_disk:
            self.save_settings()

    def set_last_profile(self, profile: str) -> None:
        """Records the profile the user picked; persisted on the next save."""
        settings, _ = self._require_ready()
        settings.last_profile = profile

    def save_settings(self) -> None:
        """
        Persists the current settings.

        Raises:
            ConfigError: If the settings could not be written; the caller decides how to report it.
        """
        settings, _ = self._require_ready()
        self.config_manager.save(settings)
        self.logger.debug("Settings saved.")

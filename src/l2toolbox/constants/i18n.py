"""
Constants for locale resources and translation lookup.
"""
from typing import Final, FrozenSet

from .config import config


class I18nConstants:
    """Defines where locale resources live and how lookups degrade."""
    FALLBACK_LOCALE: Final[str] = config.defaults.DEFAULT_LANGUAGE
    LANGUAGES_DIR_NAME: Final[str] = "Languages"
    RESOURCE_SUFFIX: Final[str] = ".ftl"
    LANGUAGE_NAME_KEY: Final[str] = "language-name"
    MISSING_TRANSLATION_TEMPLATE: Final[str] = "Missing translation: {key}"

    # FIRST STRONG ISOLATE / POP DIRECTIONAL ISOLATE, wrapped around placeables by Fluent.
    # Keep in sync with the formatter's isolation strategy.
    BIDI_ISOLATION_MARKS: Final[FrozenSet[str]] = frozenset({"\u2068", "\u2069"})

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not self.FALLBACK_LOCALE:
            raise ValueError("FALLBACK_LOCALE must not be empty")
        if not self.RESOURCE_SUFFIX.startswith("."):
            raise ValueError("RESOURCE_SUFFIX must start with a dot")
        if "{key}" not in self.MISSING_TRANSLATION_TEMPLATE:
            raise ValueError("MISSING_TRANSLATION_TEMPLATE must contain a {key} placeholder")


# Singleton instance for easy access
i18n = I18nConstants()

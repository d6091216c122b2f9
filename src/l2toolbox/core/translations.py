"""
Translation lookup for L2Toolbox.

This module provides the `Translator`, which resolves message keys against a
primary catalog (the user's locale) and a fallback catalog (a fixed default
locale), and `list_available_locales`, which discovers the locale resources
shipped in the `Languages` directory for language pickers.

Lookups never fail: a key missing from both catalogs resolves to a visible
"Missing translation" sentinel instead of raising.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from l2toolbox import constants
from .catalog import CatalogError, MessageCatalog, load_catalog
from .locale_id import LocaleId, LocaleParseError

logger = logging.getLogger(f"{constants.app.APP_NAME}.I18n")


class TranslationError(Exception):
    """Raised when a translator cannot be built or locale resources cannot be scanned."""


def get_translations_path() -> Path:
    """Returns the 'Languages' directory relative to the current working directory."""
    return Path.cwd() / constants.i18n.LANGUAGES_DIR_NAME


def strip_isolation_marks(text: str) -> str:
    """Removes the bidi isolation marks Fluent wraps around interpolated arguments."""
    marks = constants.i18n.BIDI_ISOLATION_MARKS
    return "".join(ch for ch in text if ch not in marks)


def _as_locale(value: Union[LocaleId, str]) -> LocaleId:
    return value if isinstance(value, LocaleId) else LocaleId.parse(value)


class Translator:
    """
    Resolves message keys to display text with a deterministic fallback.

    Both catalogs are always present once an instance exists.
    """

    def __init__(self, primary: MessageCatalog, fallback: MessageCatalog) -> None:
        self._primary = primary
        self._fallback = fallback

    @classmethod
    def initialize(
        cls,
        locale: Union[LocaleId, str],
        fallback_locale: Union[LocaleId, str] = constants.i18n.FALLBACK_LOCALE,
        resource_dir: Optional[Path] = None,
    ) -> "Translator":
        """
        Loads the catalog for `locale` and the catalog for `fallback_locale`.

        Both resources are required: a missing or malformed file for either locale
        means there is no usable UI language.

        Raises:
            TranslationError: If either catalog cannot be loaded.
        """
        resource_dir = Path(resource_dir) if resource_dir is not None else get_translations_path()
        try:
            primary_locale = _as_locale(locale)
            fallback = _as_locale(fallback_locale)
        except LocaleParseError as e:
            raise TranslationError(str(e)) from e

        try:
            primary_catalog = load_catalog(primary_locale, resource_dir)
        except CatalogError as e:
            logger.error("Failed to load translations for '%s': %s", primary_locale, e)
            raise TranslationError(f"Failed to load translations for '{primary_locale}': {e}") from e

        try:
            fallback_catalog = load_catalog(fallback, resource_dir)
        except CatalogError as e:
            logger.critical("Failed to load fallback translations for '%s': %s", fallback, e)
            raise TranslationError(f"Failed to load fallback translations for '{fallback}': {e}") from e

        logger.info("Translator initialized. Effective language: %s (fallback: %s)", primary_locale, fallback)
        return cls(primary_catalog, fallback_catalog)

    @property
    def locale(self) -> LocaleId:
        return self._primary.locale

    @property
    def fallback_locale(self) -> LocaleId:
        return self._fallback.locale

    def resolve(self, key: str, args: Optional[Dict[str, Any]] = None) -> str:
        """
        Returns the localized text for `key`, formatted with `args`.

        The primary catalog is consulted first, then the fallback catalog. If neither
        defines a value for the key, a "Missing translation: <key>" string is returned.
        """
        text = self._primary.format(key, args)
        if text is None:
            if self._primary.locale != self._fallback.locale:
                logger.debug("Key '%s' not found in '%s'. Using '%s' fallback.", key, self._primary.locale, self._fallback.locale)
            text = self._fallback.format(key, args)

        if text is None:
            logger.warning("Key '%s' is missing from all catalogs.", key)
            return constants.i18n.MISSING_TRANSLATION_TEMPLATE.format(key=key)

        return strip_isolation_marks(text)

    def __repr__(self) -> str:
        return f"Translator(locale={self._primary.locale}, fallback_locale={self._fallback.locale})"


def _read_language_name(path: Path, locale: LocaleId) -> Optional[str]:
    """Reads the `language-name` message of one resource, or None if it cannot be resolved."""
    try:
        catalog = MessageCatalog.from_file(locale, path)
    except CatalogError as e:
        logger.warning("Skipping locale resource %s: %s", path.name, e)
        return None

    name = catalog.format(constants.i18n.LANGUAGE_NAME_KEY)
    if name is None:
        logger.warning("Skipping locale resource %s: missing '%s'", path.name, constants.i18n.LANGUAGE_NAME_KEY)
        return None
    return strip_isolation_marks(name)


def list_available_locales(resource_dir: Optional[Path] = None) -> List[Tuple[LocaleId, str]]:
    """
    Scans `resource_dir` for locale resources and returns (locale, display name) pairs.

    The result follows directory-enumeration order; callers that need a stable order
    must sort it. Files whose name is not a locale tag, or which lack a readable
    `language-name` message, are skipped.

    A file whose name is a valid but non-canonical tag (``pl_pl.ftl``) is still
    listed, with a warning: catalogs are loaded from ``<canonical tag>.ftl``, so on
    case-sensitive filesystems selecting it fails until the file is renamed.

    Raises:
        TranslationError: If the directory cannot be read.
    """
    resource_dir = Path(resource_dir) if resource_dir is not None else get_translations_path()
    suffix = constants.i18n.RESOURCE_SUFFIX
    languages: List[Tuple[LocaleId, str]] = []

    try:
        with os.scandir(resource_dir) as entries:
            paths = [Path(entry.path) for entry in entries if entry.is_file() and entry.name.endswith(suffix)]
    except OSError as e:
        logger.error("Failed to scan locale resources in %s: %s", resource_dir, e)
        raise TranslationError(f"Failed to scan locale resources in {resource_dir}: {e}") from e

    for path in paths:
        stem = path.name[: -len(suffix)]
        try:
            locale = LocaleId.parse(stem)
        except LocaleParseError:
            logger.warning("Skipping invalid locale: %s", stem)
            continue
        if str(locale) != stem:
            logger.warning(
                "Locale resource %s is not named after its canonical tag; rename it to %s%s",
                path.name, locale, suffix,
            )

        name = _read_language_name(path, locale)
        if name is not None:
            languages.append((locale, name))

    logger.debug("Found %d available languages in %s", len(languages), resource_dir)
    return languages

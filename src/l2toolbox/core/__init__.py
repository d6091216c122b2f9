"""
Core submodule for L2Toolbox.

Contains locale identifiers, message catalogs and the translator. The
application controller lives in `l2toolbox.core.controller` and is imported
from there directly.
"""

from l2toolbox.core.catalog import CatalogError, MessageCatalog
from l2toolbox.core.locale_id import LocaleId, LocaleParseError
from l2toolbox.core.translations import TranslationError, Translator, list_available_locales

__all__ = [
    "CatalogError",
    "LocaleId",
    "LocaleParseError",
    "MessageCatalog",
    "TranslationError",
    "Translator",
    "list_available_locales",
]

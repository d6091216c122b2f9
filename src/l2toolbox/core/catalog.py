"""
Fluent message catalogs for L2Toolbox.

A `MessageCatalog` wraps a `fluent.runtime.FluentBundle` loaded from exactly one
`.ftl` resource. Resources containing syntax errors are rejected as a whole, so a
catalog is either fully loaded or not constructed at all.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from fluent.runtime import FluentBundle, FluentResource
from fluent.syntax import ast as ftl

from l2toolbox import constants
from .locale_id import LocaleId

logger = logging.getLogger(f"{constants.app.APP_NAME}.Catalog")


class CatalogError(Exception):
    """Raised when a locale resource is missing, unreadable or malformed."""


def resource_path(locale: LocaleId, resource_dir: Path) -> Path:
    """Returns the path of the `.ftl` resource for `locale` inside `resource_dir`."""
    return Path(resource_dir) / f"{locale}{constants.i18n.RESOURCE_SUFFIX}"


def _duplicate_ids(entries: Iterable[ftl.SyntaxNode]) -> List[str]:
    """Returns the ids defined more than once; term ids keep their '-' prefix."""
    seen = set()
    duplicates: List[str] = []
    for entry in entries:
        if isinstance(entry, ftl.Term):
            entry_id = f"-{entry.id.name}"
        elif isinstance(entry, ftl.Message):
            entry_id = entry.id.name
        else:
            continue
        if entry_id in seen and entry_id not in duplicates:
            duplicates.append(entry_id)
        seen.add(entry_id)
    return duplicates


class MessageCatalog:
    """
    An immutable set of formatted-message templates bound to one locale.
    """

    def __init__(self, locale: LocaleId, bundle: FluentBundle, origin: str = "<memory>") -> None:
        self._locale = locale
        self._bundle = bundle
        self._origin = origin

    @property
    def locale(self) -> LocaleId:
        return self._locale

    @property
    def origin(self) -> str:
        return self._origin

    @classmethod
    def from_source(cls, locale: LocaleId, source: str, origin: str = "<memory>") -> "MessageCatalog":
        """
        Parses Fluent source text into a catalog.

        Raises:
            CatalogError: If the source contains any entry the parser could not read,
                or defines the same message or term more than once.
        """
        resource = FluentResource(source)
        junk = [entry for entry in resource.body if isinstance(entry, ftl.Junk)]
        if junk:
            first = junk[0]
            detail = first.annotations[0].message if first.annotations else first.content.strip()
            raise CatalogError(
                f"Could not parse FTL file {origin}: {len(junk)} invalid entr{'y' if len(junk) == 1 else 'ies'} "
                f"(first: {detail})"
            )

        duplicates = _duplicate_ids(resource.body)
        if duplicates:
            raise CatalogError(f"Duplicate message ids in FTL file {origin}: {', '.join(duplicates)}")

        bundle = FluentBundle([str(locale)])
        bundle.add_resource(resource)
        logger.debug("Loaded catalog for %s from %s", locale, origin)
        return cls(locale, bundle, origin)

    @classmethod
    def from_file(cls, locale: LocaleId, path: Path) -> "MessageCatalog":
        """Reads and parses a UTF-8 `.ftl` file."""
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogError(f"Failed to read {path}: {e}") from e
        return cls.from_source(locale, source, origin=str(path))

    def has_message(self, key: str) -> bool:
        return self._bundle.has_message(key)

    def format(self, key: str, args: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """
        Formats the value of message `key`.

        Returns None when the message does not exist or has no value (attribute-only
        messages). Errors reported by the formatter, such as a missing argument, are
        rendered inline by Fluent and only logged here. A pattern that cannot be
        formatted at all, such as a cyclic reference or a number Babel cannot render,
        is logged and treated as absent.
        """
        if not self._bundle.has_message(key):
            return None
        message = self._bundle.get_message(key)
        if message.value is None:
            return None

        try:
            text, errors = self._bundle.format_pattern(message.value, args)
        except (RecursionError, ArithmeticError, ValueError, TypeError) as e:
            logger.warning("Failed to format '%s' for %s: %s", key, self._locale, e)
            return None
        for error in errors:
            logger.debug("Formatting '%s' for %s reported: %s", key, self._locale, error)
        return str(text)

    def __repr__(self) -> str:
        return f"MessageCatalog(locale={self._locale}, origin={self._origin!r})"


def load_catalog(locale: LocaleId, resource_dir: Path) -> MessageCatalog:
    """Loads the catalog for `locale` from `<resource_dir>/<locale>.ftl`."""
    return MessageCatalog.from_file(locale, resource_path(locale, resource_dir))

"""
Locale identifiers for L2Toolbox.

A `LocaleId` is a validated, structured language tag (language, optional script
and region, variants) parsed from strings such as ``"en-GB"`` or ``"sr_latn_rs"``.
Instances are immutable and compare by value, so two tags that differ only in
case or separator are equal.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple


_LANGUAGE_RE = re.compile(r"^(?:[a-z]{2,3}|[a-z]{5,8})$")
_SCRIPT_RE = re.compile(r"^[a-z]{4}$")
_REGION_RE = re.compile(r"^(?:[a-z]{2}|[0-9]{3})$")
_VARIANT_RE = re.compile(r"^(?:[a-z0-9]{5,8}|[0-9][a-z0-9]{3})$")
_SEPARATOR_RE = re.compile(r"[-_]")


class LocaleParseError(ValueError):
    """Raised when a string is not a valid locale identifier."""


@dataclass(frozen=True)
class LocaleId:
    """
    A structured language tag.

    Attributes:
        language: Lowercase ISO 639 language subtag, e.g. "en".
        script: Title-case ISO 15924 script subtag, e.g. "Latn", or None.
        region: Uppercase ISO 3166 region or 3-digit UN M.49 code, or None.
        variants: Lowercase variant subtags, sorted.
    """
    language: str
    script: Optional[str] = None
    region: Optional[str] = None
    variants: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, tag: str) -> "LocaleId":
        """
        Parses a language tag, accepting '-' or '_' separators in any letter case.

        Raises:
            LocaleParseError: If the tag is empty or any subtag is malformed or out of order.
        """
        if not isinstance(tag, str):
            raise LocaleParseError(f"Locale tag must be a string, got {type(tag).__name__}")

        subtags = _SEPARATOR_RE.split(tag.strip().lower())
        if not subtags or not subtags[0]:
            raise LocaleParseError(f"Empty locale tag: {tag!r}")

        language = subtags[0]
        if not _LANGUAGE_RE.match(language):
            raise LocaleParseError(f"Invalid language subtag '{language}' in {tag!r}")

        position = 1
        script: Optional[str] = None
        region: Optional[str] = None

        if position < len(subtags) and _SCRIPT_RE.match(subtags[position]):
            script = subtags[position].title()
            position += 1

        if position < len(subtags) and _REGION_RE.match(subtags[position]):
            region = subtags[position].upper()
            position += 1

        variants: List[str] = []
        for subtag in subtags[position:]:
            if not _VARIANT_RE.match(subtag):
                raise LocaleParseError(f"Invalid subtag '{subtag}' in {tag!r}")
            if subtag in variants:
                raise LocaleParseError(f"Duplicate variant '{subtag}' in {tag!r}")
            variants.append(subtag)

        return cls(language=language, script=script, region=region, variants=tuple(sorted(variants)))

    def __str__(self) -> str:
        parts = [self.language]
        if self.script:
            parts.append(self.script)
        if self.region:
            parts.append(self.region)
        parts.extend(self.variants)
        return "-".join(parts)

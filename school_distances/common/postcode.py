"""UK postcode normalisation and lookup-key helpers."""

from __future__ import annotations

import re

UK_UNIT_POSTCODE_RE = re.compile(r"^([A-Z]{1,2}\d[A-Z\d]?)\s(\d[A-Z]{2})$")

_PUNCTUATION_RE = re.compile(r"[\.,;:'\"`_\-/\\()\[\]{}|~!?@#$%^&*+=]")
_WHITESPACE_RE = re.compile(r"\s+")


def is_valid_uk_unit_postcode(value: str) -> bool:
    return bool(UK_UNIT_POSTCODE_RE.match(value))


def normalise_postcode(raw: str | None) -> str | None:
    """Return the display form of a postcode ("MK9 3AB") or None if unusable."""
    if raw is None:
        return None

    cleaned = raw.strip().upper()
    if not cleaned:
        return None

    cleaned = _PUNCTUATION_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub("", cleaned)

    if len(cleaned) < 5 or len(cleaned) > 7:
        return None

    cleaned = f"{cleaned[:-3]} {cleaned[-3:]}"

    if not is_valid_uk_unit_postcode(cleaned):
        return None

    return cleaned


def lookup_key(raw: str | None) -> str | None:
    """Return the join/lookup form of a location code.

    Keys are case-folded with every whitespace character removed, so
    "MK9 3AB", " mk93ab" and "Mk9\\t3Ab" all map to "mk93ab". Blank input
    maps to None.
    """
    if raw is None:
        return None
    key = _WHITESPACE_RE.sub("", str(raw)).casefold()
    return key or None

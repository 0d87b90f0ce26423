"""Utility helpers for normalising scraped text values."""

from __future__ import annotations

import re
from typing import Iterable

_WHITESPACE = re.compile(r"\s+")

UNAVAILABLE_PHRASES = (
    "out of stock",
    "sold out",
    "unavailable",
    "notify me",
)


def collapse_whitespace(value: str | None) -> str:
    """Return *value* with runs of whitespace folded into single spaces."""

    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def normalize_name(value: str | None) -> str:
    """Lower-cased, whitespace-collapsed name used for dedup keys and ids."""

    return collapse_whitespace(value).lower()


def is_unavailable_text(value: str | None) -> bool:
    """Return True when the rendered text advertises the item as unavailable."""

    if not value:
        return False

    lowered = collapse_whitespace(value).lower()
    if not lowered:
        return False
    return any(phrase in lowered for phrase in UNAVAILABLE_PHRASES)


def clean_keywords(values: Iterable[object] | None) -> tuple[str, ...]:
    """Lower-case and strip configured category keywords, dropping blanks."""

    if not values:
        return ()
    cleaned: list[str] = []
    for value in values:
        text = str(value).strip().lower()
        if text and text not in cleaned:
            cleaned.append(text)
    return tuple(cleaned)


def matches_keywords(keywords: Iterable[str], *texts: str | None) -> bool:
    """Case-insensitive substring match of any keyword against any text.

    An empty keyword set matches everything.
    """

    terms = clean_keywords(keywords)
    if not terms:
        return True
    haystacks = [collapse_whitespace(text).lower() for text in texts if text]
    return any(term in haystack for term in terms for haystack in haystacks)


__all__ = [
    "clean_keywords",
    "collapse_whitespace",
    "is_unavailable_text",
    "matches_keywords",
    "normalize_name",
]

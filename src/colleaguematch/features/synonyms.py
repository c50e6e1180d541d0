"""
Korean/English keyword synonym matching.

The packaged dictionary (`config/synonyms.yaml`) maps canonical keywords to related
expressions. A reverse index (synonym -> canonical keys) is built once on first use.

Expansion is deliberately generous: it favors recall over precision, because it
feeds fuzzy text matching rather than exact filtering.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from colleaguematch.config.settings import get_synonym_dictionary


@lru_cache
def _reverse_index() -> dict[str, tuple[str, ...]]:
    reverse: dict[str, list[str]] = {}
    for key, values in get_synonym_dictionary().items():
        for value in values:
            keys = reverse.setdefault(value, [])
            if key not in keys:
                keys.append(key)
    return {value: tuple(keys) for value, keys in reverse.items()}


def get_synonyms(keyword: str) -> list[str]:
    """Forward and reverse synonyms of a single keyword (lower-cased, no substring matching)."""
    lower = keyword.strip().lower()
    out: dict[str, None] = {}
    for synonym in get_synonym_dictionary().get(lower, []):
        out[synonym] = None
    for key in _reverse_index().get(lower, ()):
        out[key] = None
    return list(out)


def expand_keywords(keywords: Iterable[str]) -> list[str]:
    """Expand keywords with forward, reverse and substring synonym matches.

    Returns a lower-cased, de-duplicated list in first-seen order.
    """
    dictionary = get_synonym_dictionary()
    reverse = _reverse_index()
    expanded: dict[str, None] = {}

    for keyword in keywords:
        lower = keyword.strip().lower()
        if not lower:
            continue
        expanded[lower] = None

        for synonym in dictionary.get(lower, []):
            expanded[synonym] = None
        for key in reverse.get(lower, ()):
            expanded[key] = None

        # Single characters would match nearly every key.
        if len(lower) >= 2:
            for key, values in dictionary.items():
                if lower in key or key in lower:
                    expanded[key] = None
                    for value in values:
                        expanded[value] = None

    return list(expanded)


def match_with_synonyms(text: str | None, keywords: list[str]) -> float:
    """Share of `keywords` found in `text`, counting synonym hits; capped at 1.0."""
    if not text or not keywords:
        return 0.0
    haystack = text.lower()
    found = sum(1 for term in expand_keywords(keywords) if term in haystack)
    return min(found / len(keywords), 1.0)

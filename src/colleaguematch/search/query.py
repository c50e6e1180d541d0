"""
Rule-based query analysis for semantic search.

Natural-language expansion by a language model is an external concern: anything that
returns an `ExpandedQuery` can act as an expander (see `expand_query`). Without one,
`fallback_expansion` and `exact_query` derive structured hints from the raw text using
the keyword tables in `search.*` settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal

from pydantic import ValidationError

from colleaguematch.config.settings import QueryIntent, SearchStrategy, Settings, get_settings
from colleaguematch.domain.models import ExpandedQuery, ProfileFieldHints

logger = logging.getLogger(__name__)

VALID_MBTI_TYPES: tuple[str, ...] = (
    "INTJ", "INTP", "ENTJ", "ENTP",
    "INFJ", "INFP", "ENFJ", "ENFP",
    "ISTJ", "ISFJ", "ESTJ", "ESFJ",
    "ISTP", "ISFP", "ESTP", "ESFP",
)

QueryExpander = Callable[[str], Any]


@dataclass(frozen=True)
class QueryAnalysis:
    query_length: Literal["short", "medium", "long"]
    has_specific_keywords: bool
    has_descriptive_terms: bool
    suggested_strategy: SearchStrategy


def classify_query_intent(query: str, *, settings: Settings | None = None) -> tuple[QueryIntent, float]:
    """Pick the intent whose keyword table has the most hits in `query`.

    Ties go to the intent listed first. Confidence is `0.5 + 0.2 * hits`, capped at 1.0;
    no hits at all yields `("general", 0.5)`.
    """
    settings = settings or get_settings()
    lowered = query.lower()

    best_intent: QueryIntent = "general"
    best_hits = 0
    for intent, patterns in settings.search.intent_keywords.items():
        hits = sum(1 for p in patterns if p.lower() in lowered)
        if hits > best_hits:
            best_intent, best_hits = intent, hits

    if best_hits == 0:
        return "general", 0.5
    return best_intent, min(0.5 + best_hits * 0.2, 1.0)


def analyze_query(query: str, *, settings: Settings | None = None) -> QueryAnalysis:
    """Classify query length and choose a search strategy.

    Short queries or ones naming specific skills/places favor text matching; long or
    descriptive ones favor vector similarity.
    """
    settings = settings or get_settings()
    lowered = query.lower()
    word_count = len(query.split())

    if word_count <= 2:
        length: Literal["short", "medium", "long"] = "short"
    elif word_count <= 5:
        length = "medium"
    else:
        length = "long"

    specific = any(k.lower() in lowered for k in settings.search.specific_keywords)
    descriptive = any(t.lower() in lowered for t in settings.search.descriptive_terms)

    if length == "short" or specific:
        strategy: SearchStrategy = "text_heavy"
    elif length == "long" or descriptive:
        strategy = "vector_heavy"
    else:
        strategy = "balanced"

    return QueryAnalysis(
        query_length=length,
        has_specific_keywords=specific,
        has_descriptive_terms=descriptive,
        suggested_strategy=strategy,
    )


def _mentioned_mbti(query: str) -> list[str]:
    lowered = query.lower()
    return [code for code in VALID_MBTI_TYPES if code.lower() in lowered]


def _mentioned_tags(query: str, settings: Settings) -> list[str]:
    lowered = query.lower()
    return [tag for tag in settings.search.hobby_tags if tag.lower() in lowered]


def fallback_expansion(query: str, *, settings: Settings | None = None) -> ExpandedQuery:
    """Hints taken only from what the query literally says (no synonyms, no guessing)."""
    settings = settings or get_settings()
    keywords = [w for w in query.split() if len(w) > 1]
    intent, intent_confidence = classify_query_intent(query, settings=settings)

    return ExpandedQuery(
        original_query=query,
        expanded_description=query,
        suggested_mbti_types=_mentioned_mbti(query)[:2],
        suggested_hobby_tags=_mentioned_tags(query, settings)[:3],
        search_keywords=keywords[: settings.search.max_keywords],
        profile_field_hints=ProfileFieldHints(
            collaboration_style=keywords, strengths=keywords, preferred_people_type=keywords
        ),
        confidence=0.5,
        query_intent=intent,
        intent_confidence=intent_confidence,
    )


def exact_query(query: str, *, settings: Settings | None = None) -> ExpandedQuery:
    """Exact mode: every whitespace-separated token is a keyword, confidence 1.0."""
    settings = settings or get_settings()
    keywords = query.split()
    intent, intent_confidence = classify_query_intent(query, settings=settings)

    return ExpandedQuery(
        original_query=query,
        expanded_description=query,
        suggested_mbti_types=_mentioned_mbti(query),
        suggested_hobby_tags=_mentioned_tags(query, settings),
        search_keywords=keywords,
        profile_field_hints=ProfileFieldHints(
            collaboration_style=keywords, strengths=keywords, preferred_people_type=keywords
        ),
        confidence=1.0,
        query_intent=intent,
        intent_confidence=intent_confidence,
    )


def validate_expansion(raw: Any, query: str, *, settings: Settings | None = None) -> ExpandedQuery:
    """Coerce an expander's output into a clean `ExpandedQuery`.

    MBTI codes are upper-cased and checked (at most four kept), keywords are capped at
    `search.max_keywords`, and hobby tags are limited to the known tag list.
    """
    settings = settings or get_settings()
    expanded = raw if isinstance(raw, ExpandedQuery) else ExpandedQuery.model_validate(
        {"original_query": query, **dict(raw)}
    )
    known_tags = {t.lower() for t in settings.search.hobby_tags}
    return expanded.model_copy(
        update={
            "original_query": query,
            "search_keywords": expanded.search_keywords[: settings.search.max_keywords],
            "suggested_hobby_tags": [t for t in expanded.suggested_hobby_tags if t.lower() in known_tags],
        }
    )


def expand_query(
    query: str,
    *,
    mode: Literal["expanded", "exact"] = "expanded",
    expander: QueryExpander | None = None,
    settings: Settings | None = None,
) -> ExpandedQuery:
    """Turn a raw query into an `ExpandedQuery`.

    In `expanded` mode an external `expander` is tried first; when it is missing, raises,
    or returns something that does not validate, the rule-based fallback is used.

    Raises:
        ValueError: If `query` is blank.
    """
    settings = settings or get_settings()
    query = query.strip()
    if not query:
        raise ValueError("query must not be empty")

    if mode == "exact":
        return exact_query(query, settings=settings)
    if expander is None:
        return fallback_expansion(query, settings=settings)

    try:
        return validate_expansion(expander(query), query, settings=settings)
    except (ValidationError, TypeError, ValueError, RuntimeError) as e:
        logger.warning("Query expander failed; using rule-based fallback: %s", e)
        return fallback_expansion(query, settings=settings)

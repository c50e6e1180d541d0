"""
Hybrid semantic search over colleague profiles.

Five signals per candidate, each in [0, 1]:
- vector: `(cosine + 1) / 2` between the query embedding and the candidate's combined embedding
- profile_field: share of hint keywords found per profile field, weighted per field
- mbti: best canonical MBTI compatibility against the suggested types
- tag: Jaccard of candidate hobbies and suggested tags
- text: synonym-expanded keyword coverage of all searchable text, with a bonus for literal hits

Signal weights blend the strategy table with the intent table
(`strategy_blend * strategy + (1 - strategy_blend) * intent`).
"""

from __future__ import annotations

import logging
from typing import Sequence

from colleaguematch.config.settings import QueryIntent, SearchStrategy, Settings, get_settings
from colleaguematch.core.vectors import cosine_similarity
from colleaguematch.domain.models import ExpandedQuery, Profile, SemanticSearchResult, SemanticSignals
from colleaguematch.features.mbti import mbti_compatibility
from colleaguematch.features.synonyms import expand_keywords
from colleaguematch.features.tags import jaccard
from colleaguematch.scoring.composite import clamp01, weighted_total

logger = logging.getLogger(__name__)

# (field, base weight, intents that boost it by FIELD_INTENT_BOOST)
PROFILE_FIELD_WEIGHTS: tuple[tuple[str, float, tuple[str, ...]], ...] = (
    ("collaboration_style", 1.5, ("personality",)),
    ("strengths", 1.5, ("personality", "skill")),
    ("preferred_people_type", 1.3, ("personality",)),
    ("tech_stack", 1.5, ("skill",)),
    ("work_description", 1.3, ("skill",)),
    ("certifications", 1.2, ("skill",)),
    ("interests", 1.3, ("hobby",)),
    ("favorite_food", 1.0, ("hobby",)),
    ("career_goals", 1.2, ("personality", "skill")),
    ("department", 1.5, ("department",)),
    ("job_role", 1.5, ("department", "skill")),
    ("office_location", 1.3, ("department",)),
    ("living_location", 1.0, ("department",)),
    ("hometown", 0.8, ()),
    ("education", 1.0, ("skill",)),
    ("age_range", 0.5, ()),
    ("languages", 1.0, ("skill",)),
    ("hobbies", 1.3, ("hobby",)),
)
FIELD_INTENT_BOOST = 1.5
# Matching keywords in ~30% of the weighted fields already counts as a full match.
PROFILE_FIELD_SATURATION = 0.3

SEARCHABLE_FIELDS: tuple[str, ...] = (
    "name", "department", "job_role", "office_location", "mbti",
    "collaboration_style", "strengths", "preferred_people_type",
    "work_description", "tech_stack", "certifications",
    "interests", "favorite_food", "career_goals",
    "living_location", "hometown", "education", "age_range", "languages",
)

NO_SUGGESTED_MBTI_SCORE = 0.3
NO_SUGGESTED_TAG_SCORE = 0.2
EXACT_KEYWORD_BONUS = 0.2


def _field_text(profile: Profile, field: str) -> str:
    if field == "hobbies":
        return " ".join(profile.hobbies)
    return getattr(profile, field) or ""


def search_weights(
    strategy: SearchStrategy, intent: QueryIntent, *, settings: Settings
) -> dict[str, float]:
    cfg = settings.search
    strategy_w = cfg.strategy_weights.get(strategy) or cfg.strategy_weights["balanced"]
    intent_w = cfg.intent_weights.get(intent) or cfg.intent_weights["general"]
    blend = cfg.strategy_blend
    return {
        name: strategy_w.get(name, 0.0) * blend + intent_w.get(name, 0.0) * (1.0 - blend)
        for name in ("vector", "profile_field", "mbti", "tag", "text")
    }


def profile_field_score(candidate: Profile, expanded: ExpandedQuery) -> float:
    hints = expanded.profile_field_hints
    keywords = [
        k.lower()
        for k in (*hints.collaboration_style, *hints.strengths, *hints.preferred_people_type)
        if k.strip()
    ]
    if not keywords:
        return 0.0

    earned = 0.0
    possible = 0.0
    for field, base, boosted_by in PROFILE_FIELD_WEIGHTS:
        text = _field_text(candidate, field).lower()
        if not text:
            continue
        weight = base * FIELD_INTENT_BOOST if expanded.query_intent in boosted_by else base
        possible += weight
        hits = sum(1 for k in keywords if k in text)
        if hits:
            earned += hits / len(keywords) * weight

    if earned == 0:
        return 0.0
    return min(earned / max(possible * PROFILE_FIELD_SATURATION, 1.0), 1.0)


def mbti_signal(candidate: Profile, expanded: ExpandedQuery, *, settings: Settings) -> float:
    if candidate.mbti is None:
        return 0.0
    if not expanded.suggested_mbti_types:
        return NO_SUGGESTED_MBTI_SCORE if expanded.query_intent in ("personality", "mbti") else 0.0
    return max(
        mbti_compatibility(candidate.mbti, code, settings.scoring.mbti)
        for code in expanded.suggested_mbti_types
    )


def tag_signal(candidate: Profile, expanded: ExpandedQuery) -> float:
    if not candidate.hobbies:
        return 0.0
    if not expanded.suggested_hobby_tags:
        return NO_SUGGESTED_TAG_SCORE if expanded.query_intent == "hobby" else 0.0
    return jaccard(candidate.hobbies, expanded.suggested_hobby_tags)


def text_signal(candidate: Profile, keywords: Sequence[str]) -> float:
    keywords = [k for k in keywords if k.strip()]
    if not keywords:
        return 0.0

    parts = [_field_text(candidate, f) for f in SEARCHABLE_FIELDS]
    parts.append(" ".join(candidate.hobbies))
    haystack = " ".join(p for p in parts if p).lower()

    matched = 0
    bonus = 0.0
    for keyword in keywords:
        lower = keyword.strip().lower()
        if lower in haystack:
            matched += 1
            bonus += EXACT_KEYWORD_BONUS
        elif any(term in haystack for term in expand_keywords([keyword])):
            matched += 1
    return min(matched / len(keywords) + bonus, 1.0)


def vector_signal(candidate: Profile, query_embedding: Sequence[float] | None) -> float:
    combined = candidate.embeddings.combined
    if not query_embedding or combined is None:
        return 0.0
    return clamp01((cosine_similarity(query_embedding, combined) + 1.0) / 2.0)


def _contains_any(text: str | None, keywords: Sequence[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(k.lower() in lowered for k in keywords if k)


def search_reasons(candidate: Profile, expanded: ExpandedQuery, signals: SemanticSignals) -> list[str]:
    reasons: list[str] = []
    keywords = expanded.search_keywords
    intent = expanded.query_intent

    if intent == "skill" and signals.text >= 0.5:
        fields = []
        if _contains_any(candidate.tech_stack, keywords):
            fields.append("기술 스택")
        if _contains_any(candidate.work_description, keywords):
            fields.append("업무 설명")
        if fields:
            reasons.append(f"{', '.join(fields)} 일치")
    elif intent == "hobby" and signals.tag > 0 and expanded.suggested_hobby_tags:
        wanted = {t.lower() for t in expanded.suggested_hobby_tags}
        tags = [h for h in candidate.hobbies if h.lower() in wanted]
        if tags:
            reasons.append(f"취미: {', '.join(tags)}")
    elif intent == "mbti" and candidate.mbti:
        if signals.mbti >= 0.7:
            reasons.append(f"MBTI {candidate.mbti} 일치")
        elif signals.mbti >= 0.3:
            reasons.append(f"MBTI {candidate.mbti} 유사")
    elif intent == "department":
        if _contains_any(candidate.department, keywords):
            reasons.append(f"부서: {candidate.department}")
        if _contains_any(candidate.job_role, keywords):
            reasons.append(f"직무: {candidate.job_role}")

    hints = expanded.profile_field_hints
    if signals.profile_field >= 0.5:
        fields = []
        if _contains_any(candidate.collaboration_style, hints.collaboration_style):
            fields.append("협업 스타일")
        if _contains_any(candidate.strengths, hints.strengths):
            fields.append("강점")
        if _contains_any(candidate.preferred_people_type, hints.preferred_people_type):
            fields.append("선호하는 동료 유형")
        if fields:
            reasons.append(f"{', '.join(fields)} 일치")
    elif signals.profile_field > 0 and not reasons:
        reasons.append("프로필과 부분 일치")

    if signals.vector >= 0.65 and not reasons:
        reasons.append("프로필 유사도 높음")
    if not reasons:
        reasons.append("검색어와 관련된 프로필")
    return reasons


def semantic_search(
    candidates: Sequence[Profile],
    expanded: ExpandedQuery,
    query_embedding: Sequence[float] | None = None,
    *,
    strategy: SearchStrategy = "balanced",
    limit: int | None = None,
    min_score: float | None = None,
    settings: Settings | None = None,
) -> list[SemanticSearchResult]:
    """Rank `candidates` against an expanded query.

    Candidates scoring below `min_score` are dropped; the rest are sorted by score
    (stable, descending) and truncated to `limit`. Without a query embedding the vector
    signal is 0 for everyone.

    Raises:
        EmbeddingDimensionError: If the query embedding and a candidate embedding differ in length.
    """
    settings = settings or get_settings()
    limit = limit if limit is not None else settings.search.limit_default
    min_score = min_score if min_score is not None else settings.search.min_score
    weights = search_weights(strategy, expanded.query_intent, settings=settings)

    results: list[SemanticSearchResult] = []
    for candidate in candidates:
        signals = SemanticSignals(
            vector=vector_signal(candidate, query_embedding),
            profile_field=profile_field_score(candidate, expanded),
            mbti=mbti_signal(candidate, expanded, settings=settings),
            tag=tag_signal(candidate, expanded),
            text=text_signal(candidate, expanded.search_keywords),
        )
        score = weighted_total(signals.model_dump(), weights)
        if score < min_score:
            continue
        results.append(
            SemanticSearchResult(
                profile=candidate,
                score=score,
                signals=signals,
                reasons=search_reasons(candidate, expanded, signals),
            )
        )

    results.sort(key=lambda r: r.score, reverse=True)
    logger.debug(
        "Semantic search: intent=%s strategy=%s matched=%s/%s",
        expanded.query_intent,
        strategy,
        len(results),
        len(candidates),
    )
    return results[:limit]

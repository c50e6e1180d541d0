from __future__ import annotations

# Orchestration for colleague, club and search recommendations.
# It wires together:
# - domain input (request models, profiles, clubs)
# - privacy redaction (visibility settings)
# - feature scoring (compatibility, club scoring, semantic search)
# - ranking + explainable output (result models with a `meta` block)
#
# Scoring stays pure; this layer owns pool capping, sorting, paging and reporting.

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from colleaguematch.config.overrides import apply_settings_overrides
from colleaguematch.config.settings import Settings, get_settings
from colleaguematch.domain.models import (
    SPECIALIZED_EMBEDDING_FIELDS,
    Club,
    ClubMembership,
    ClubRecommendation,
    ClubRecommendationRequest,
    ClubRecommendationResult,
    ClubWeights,
    MatchPreferences,
    MatchRecommendation,
    MatchRecommendationRequest,
    MatchRecommendationResult,
    MatchWeights,
    Profile,
    SearchRequest,
    SearchResponse,
)
from colleaguematch.scoring.clubs import resolve_club_weights, score_club
from colleaguematch.scoring.compatibility import resolve_match_weights, score_compatibility
from colleaguematch.scoring.explain import explain_match
from colleaguematch.search.query import QueryExpander, analyze_query, expand_query
from colleaguematch.search.semantic import semantic_search

logger = logging.getLogger(__name__)

# Profile fields that can be hidden; list-valued ones become empty instead of None.
REDACTABLE_FIELDS: tuple[str, ...] = (
    "department",
    "job_role",
    "office_location",
    "mbti",
    "hobbies",
    "collaboration_style",
    "strengths",
    "preferred_people_type",
    "work_description",
    "tech_stack",
    "interests",
    "career_goals",
    "living_location",
    "hometown",
    "education",
    "favorite_food",
    "age_range",
    "certifications",
    "languages",
)


def redact_private_fields(profile: Profile) -> Profile:
    """Return a copy of `profile` with every `private` field removed.

    Specialized embedding slots follow their source text field, so private text cannot
    influence similarity scores. The combined vector is kept.
    """
    private = [f for f, v in profile.visibility.items() if v == "private" and f in REDACTABLE_FIELDS]
    if not private:
        return profile

    update: dict[str, Any] = {f: ([] if f == "hobbies" else None) for f in private}
    slots = {f: None for f in private if f in SPECIALIZED_EMBEDDING_FIELDS}
    if slots:
        update["embeddings"] = profile.embeddings.model_copy(update=slots)
    return profile.model_copy(update=update)


def _effective_limit(limit: int | None, default: int, settings: Settings) -> int:
    return max(1, min(limit or default, settings.scoring.max_results))


def _candidate_pool(viewer: Profile, candidates: Sequence[Profile], settings: Settings) -> list[Profile]:
    pool = [c for c in candidates if c.user_id != viewer.user_id]
    cap = settings.scoring.candidate_pool_limit
    if len(pool) > cap:
        logger.info("Candidate pool capped: %s -> %s", len(pool), cap)
        pool = pool[:cap]
    return pool


def recommend_colleagues(
    viewer: Profile,
    candidates: Sequence[Profile],
    *,
    preferences: MatchPreferences | None = None,
    weights: MatchWeights | None = None,
    limit: int | None = None,
    settings: Settings | None = None,
    settings_overrides: dict[str, Any] | None = None,
) -> MatchRecommendationResult:
    t0 = time.monotonic()

    # ---- Step 1: Resolve settings and weights for THIS request ----
    settings = apply_settings_overrides(settings or get_settings(), settings_overrides)
    effective_weights = resolve_match_weights(settings, weights)
    preferences = preferences or MatchPreferences()
    top_n = _effective_limit(limit, settings.scoring.top_n_default, settings)

    # ---- Step 2: Build the pool (no self-match, capped) and hide private fields ----
    pool = [redact_private_fields(c) for c in _candidate_pool(viewer, candidates, settings)]

    # ---- Step 3: Score + explain every candidate ----
    results: list[MatchRecommendation] = []
    for candidate in pool:
        breakdown = score_compatibility(
            viewer, candidate, preferences, effective_weights, settings=settings
        )
        explanation = explain_match(viewer, candidate, breakdown, settings=settings)
        results.append(
            MatchRecommendation(candidate=candidate, breakdown=breakdown, explanation=explanation)
        )

    # ---- Step 4: Rank (stable, descending) and page ----
    results.sort(key=lambda r: r.breakdown.total, reverse=True)

    warnings: list[dict[str, Any]] = []
    if viewer.embeddings.combined is None:
        warnings.append(
            {
                "code": "VIEWER_EMBEDDING_MISSING",
                "message": "The viewer has no embedding; similarity was scored as 0 for every candidate.",
            }
        )
    weight_sum = sum(effective_weights.values())
    if not math.isclose(weight_sum, 1.0, abs_tol=settings.scoring.weight_sum_tolerance):
        warnings.append(
            {
                "code": "WEIGHTS_NOT_NORMALIZED",
                "message": f"Match weights sum to {weight_sum:.4f}; totals are not rescaled.",
            }
        )

    meta = {
        "candidates_received": len(candidates),
        "candidates_scored": len(pool),
        "settings_snapshot": {
            "weights": effective_weights,
            "weight_policy": settings.scoring.weight_policy,
            "limit": top_n,
            "overrides_enabled": bool(settings_overrides),
        },
        "warnings": warnings,
        "timings_ms": {"total": int((time.monotonic() - t0) * 1000)},
    }
    return MatchRecommendationResult(
        generated_at=datetime.now(timezone.utc),
        viewer_id=viewer.user_id,
        results=results[:top_n],
        meta=meta,
    )


def recommend_colleagues_for_request(
    request: MatchRecommendationRequest, *, settings: Settings | None = None
) -> MatchRecommendationResult:
    return recommend_colleagues(
        request.viewer,
        request.candidates,
        preferences=request.preferences,
        weights=request.weights,
        limit=request.limit,
        settings=settings,
        settings_overrides=request.settings_overrides,
    )


def recommend_clubs(
    viewer: Profile,
    clubs: Sequence[Club],
    memberships: Sequence[ClubMembership],
    profiles: Sequence[Profile],
    *,
    recommended_user_ids: Sequence[str] | None = None,
    exclude_joined: bool = True,
    weights: ClubWeights | None = None,
    limit: int | None = None,
    settings: Settings | None = None,
    settings_overrides: dict[str, Any] | None = None,
) -> ClubRecommendationResult:
    t0 = time.monotonic()
    settings = apply_settings_overrides(settings or get_settings(), settings_overrides)
    effective_weights = resolve_club_weights(settings, weights)
    top_n = _effective_limit(limit, settings.clubs.top_n_default, settings)

    # Social-graph input defaults to the viewer's own colleague recommendations.
    if recommended_user_ids is None:
        colleagues = recommend_colleagues(viewer, profiles, settings=settings)
        recommended_user_ids = [r.candidate.user_id for r in colleagues.results]

    by_id = {p.user_id: redact_private_fields(p) for p in profiles if p.user_id != viewer.user_id}
    active = [m for m in memberships if m.status == "active"]
    joined = {m.club_id for m in active if m.user_id == viewer.user_id}

    results: list[ClubRecommendation] = []
    skipped_joined = 0
    for club in clubs:
        if exclude_joined and club.id in joined:
            skipped_joined += 1
            continue
        members = [by_id[m.user_id] for m in active if m.club_id == club.id and m.user_id in by_id]
        results.append(
            score_club(
                viewer,
                club,
                members,
                recommended_user_ids,
                active,
                effective_weights,
                settings=settings,
            )
        )

    results.sort(key=lambda r: r.total, reverse=True)

    meta = {
        "clubs_received": len(clubs),
        "clubs_scored": len(results),
        "excluded_joined": skipped_joined,
        "recommended_user_count": len(recommended_user_ids),
        "settings_snapshot": {"weights": effective_weights, "limit": top_n, "exclude_joined": exclude_joined},
        "timings_ms": {"total": int((time.monotonic() - t0) * 1000)},
    }
    return ClubRecommendationResult(
        generated_at=datetime.now(timezone.utc),
        viewer_id=viewer.user_id,
        results=results[:top_n],
        meta=meta,
    )


def recommend_clubs_for_request(
    request: ClubRecommendationRequest, *, settings: Settings | None = None
) -> ClubRecommendationResult:
    return recommend_clubs(
        request.viewer,
        request.clubs,
        request.memberships,
        request.profiles,
        recommended_user_ids=request.recommended_user_ids,
        exclude_joined=request.exclude_joined,
        weights=request.weights,
        limit=request.limit,
        settings=settings,
        settings_overrides=request.settings_overrides,
    )


def search_colleagues(
    request: SearchRequest,
    *,
    settings: Settings | None = None,
    expander: QueryExpander | None = None,
    embed_query: Callable[[str], list[float]] | None = None,
) -> SearchResponse:
    """Expand the query, pick a strategy and rank redacted candidates.

    `embed_query` supplies the query vector when the request carries none; provider
    failures there only disable the vector signal.
    """
    t0 = time.monotonic()
    settings = apply_settings_overrides(settings or get_settings(), request.settings_overrides)

    expanded = expand_query(request.query, mode=request.mode, expander=expander, settings=settings)
    strategy = request.strategy or analyze_query(request.query, settings=settings).suggested_strategy

    warnings: list[dict[str, Any]] = []
    query_embedding = request.query_embedding
    if query_embedding is None and embed_query is not None:
        try:
            query_embedding = embed_query(expanded.expanded_description or request.query)
        except RuntimeError as e:
            logger.warning("Query embedding unavailable; vector signal disabled: %s", e)
            warnings.append({"code": "QUERY_EMBEDDING_UNAVAILABLE", "message": str(e)})

    candidates = [
        redact_private_fields(c) for c in request.candidates if c.user_id != request.viewer_id
    ]
    results = semantic_search(
        candidates,
        expanded,
        query_embedding,
        strategy=strategy,
        limit=request.limit,
        min_score=request.min_score,
        settings=settings,
    )

    meta = {
        "candidates_scored": len(candidates),
        "vector_signal": query_embedding is not None,
        "warnings": warnings,
        "timings_ms": {"total": int((time.monotonic() - t0) * 1000)},
    }
    return SearchResponse(
        generated_at=datetime.now(timezone.utc),
        expanded_query=expanded,
        strategy=strategy,
        results=results,
        meta=meta,
    )

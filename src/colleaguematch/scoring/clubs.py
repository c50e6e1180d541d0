"""
Club recommendation scoring.

Five components, each in [0, 1]:
- tag_match: Jaccard of viewer hobbies and club tags
- social_graph: recommended colleagues who are active members (saturates at `social_graph_cap`)
- member_composition: average profile similarity to current members
- activity_level: step function over recent activity
- category_preference: viewer interest in the club's category

The total is their weighted sum. Filtering out already-joined clubs is the recommender's job.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from colleaguematch.config.settings import Settings, get_settings
from colleaguematch.domain.models import (
    Club,
    ClubBreakdown,
    ClubMembership,
    ClubRecommendation,
    ClubWeights,
    Profile,
)
from colleaguematch.features.clubs import (
    score_activity,
    score_category_preference,
    score_club_tags,
    score_member_composition,
    score_social_graph,
)
from colleaguematch.scoring.composite import ComponentResult, weighted_total

FALLBACK_REASON = "새로운 동호회를 탐색해보세요"


def resolve_club_weights(
    settings: Settings, overrides: ClubWeights | Mapping[str, float | None] | None = None
) -> dict[str, float]:
    """Merge partial club weight overrides onto the configured defaults."""
    weights = {k: float(v) for k, v in settings.clubs.weights.items()}
    if isinstance(overrides, ClubWeights):
        overrides = overrides.model_dump(exclude_none=True)
    for name, value in (overrides or {}).items():
        if value is None:
            continue
        if name not in weights:
            raise ValueError(f"Unknown club weight: '{name}'")
        if float(value) < 0:
            raise ValueError(f"Club weight '{name}' must be >= 0")
        weights[name] = float(value)
    return weights


def club_reasons(
    breakdown: ClubBreakdown, club: Club, social_match_count: int, *, settings: Settings
) -> list[str]:
    thresholds = settings.clubs.reason_thresholds
    reasons: list[str] = []

    if breakdown.tag_match >= thresholds.tag_match:
        reasons.append("관심사 태그가 잘 맞아요")
    if social_match_count > 0:
        reasons.append(f"추천 동료 {social_match_count}명이 활동 중이에요")
    if breakdown.member_composition >= thresholds.member_composition:
        reasons.append("비슷한 성향의 회원들이 많아요")
    if breakdown.activity_level >= thresholds.activity_level:
        reasons.append("활발하게 활동하는 동호회예요")
    if breakdown.category_preference >= thresholds.category_preference and club.category:
        reasons.append(f"{club.category} 분야에 관심이 있으시네요")

    if not reasons:
        reasons.append(FALLBACK_REASON)
    return reasons[: settings.clubs.max_reasons]


def score_club(
    user: Profile,
    club: Club,
    member_profiles: list[Profile],
    recommended_user_ids: Iterable[str],
    memberships: Iterable[ClubMembership],
    weights: Mapping[str, float] | None = None,
    *,
    settings: Settings | None = None,
) -> ClubRecommendation:
    """Score one club for `user`.

    `member_profiles` are the profiles of the club's current members, `memberships` may
    span every club (only this club's active rows count toward the social graph).
    """
    settings = settings or get_settings()
    if weights is None:
        weights = resolve_club_weights(settings)
    cfg = settings.clubs

    components = {
        "tag_match": ComponentResult.from_tuple(score_club_tags(user, club)),
        "social_graph": ComponentResult.from_tuple(
            score_social_graph(
                club,
                recommended_user_ids=recommended_user_ids,
                memberships=memberships,
                cap=cfg.social_graph_cap,
            )
        ),
        "member_composition": ComponentResult.from_tuple(
            score_member_composition(user, member_profiles, settings=cfg)
        ),
        "activity_level": ComponentResult.from_tuple(score_activity(club, settings=cfg)),
        "category_preference": ComponentResult.from_tuple(
            score_category_preference(user, club, settings=cfg)
        ),
    }
    scores = {name: result.score for name, result in components.items()}
    breakdown = ClubBreakdown(**scores)
    social_match_count = int(components["social_graph"].details["matched_count"])

    return ClubRecommendation(
        club=club,
        breakdown=breakdown,
        total=weighted_total(scores, weights),
        reasons=club_reasons(breakdown, club, social_match_count, settings=settings),
        social_match_count=social_match_count,
    )

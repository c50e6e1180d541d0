"""
Club-level features for club recommendations.

Each scorer returns `(score, details, reasons)` like the colleague features; the
club scorer in `colleaguematch.scoring.clubs` assembles them.
"""

from __future__ import annotations

from typing import Iterable

from colleaguematch.config.settings import ClubSettings
from colleaguematch.domain.models import Club, ClubMembership, Profile
from colleaguematch.features.attributes import normalize_value
from colleaguematch.features.tags import jaccard


def score_club_tags(user: Profile, club: Club) -> tuple[float, dict, list[str]]:
    score = jaccard(user.hobbies, club.tags)
    return score, {"club_tags": list(club.tags)}, []


def score_social_graph(
    club: Club,
    *,
    recommended_user_ids: Iterable[str],
    memberships: Iterable[ClubMembership],
    cap: int,
) -> tuple[float, dict, list[str]]:
    """How many of the viewer's recommended colleagues are active members of `club`."""
    recommended = set(recommended_user_ids)
    if not recommended:
        return 0.0, {"matched_count": 0, "matched_user_ids": []}, []

    matched = sorted(
        {
            m.user_id
            for m in memberships
            if m.club_id == club.id and m.status == "active" and m.user_id in recommended
        }
    )
    score = min(len(matched) / cap, 1.0)
    return score, {"matched_count": len(matched), "matched_user_ids": matched}, []


def _member_similarity(user: Profile, member: Profile, factor_weights: dict[str, float]) -> float | None:
    earned = 0.0
    possible = 0.0

    if user.hobbies and member.hobbies:
        weight = factor_weights.get("tag", 1.0)
        earned += jaccard(user.hobbies, member.hobbies) * weight
        possible += weight

    pairs = (
        ("department", user.department, member.department),
        ("job_role", user.job_role, member.job_role),
        ("location", user.office_location, member.office_location),
    )
    for factor, mine, theirs in pairs:
        left, right = normalize_value(mine), normalize_value(theirs)
        if left is None or right is None:
            continue
        weight = factor_weights.get(factor, 0.0)
        if left == right:
            earned += weight
        possible += weight

    if possible <= 0:
        return None
    return earned / possible


def score_member_composition(
    user: Profile, member_profiles: list[Profile], *, settings: ClubSettings
) -> tuple[float, dict, list[str]]:
    """Average profile similarity between the viewer and the club's members.

    A member with no comparable factor contributes 0 but still counts in the average.
    """
    if not member_profiles:
        return 0.0, {"member_count": 0, "comparable_members": 0}, []

    total = 0.0
    comparable = 0
    for member in member_profiles:
        similarity = _member_similarity(user, member, settings.composition_factor_weights)
        if similarity is None:
            continue
        total += similarity
        comparable += 1

    score = total / len(member_profiles)
    return score, {"member_count": len(member_profiles), "comparable_members": comparable}, []


def score_activity(club: Club, *, settings: ClubSettings) -> tuple[float, dict, list[str]]:
    """Step function over recent activity (posts + chat messages in the last week)."""
    count = club.recent_activity_count
    score = 0.0
    for step in sorted(settings.activity_steps, key=lambda s: s.min_count, reverse=True):
        if count >= step.min_count:
            score = step.score
            break
    return score, {"recent_activity_count": count}, []


def score_category_preference(
    user: Profile, club: Club, *, settings: ClubSettings
) -> tuple[float, dict, list[str]]:
    """Infer interest in the club's category from the viewer's hobby tags.

    A tag counts when it and any category keyword contain one another. Neutral when the
    viewer has no tags or the category has no keywords.
    """
    keywords = [k.lower() for k in settings.category_keywords.get(club.category or "", [])]
    if not user.hobbies or not keywords:
        return settings.category_neutral_score, {"matched_tags": [], "neutral": True}, []

    matched = [
        tag
        for tag in user.hobbies
        if any(tag.lower() in kw or kw in tag.lower() for kw in keywords)
    ]
    score = min(len(matched) / settings.category_match_cap, 1.0)
    return score, {"matched_tags": matched, "neutral": False}, []

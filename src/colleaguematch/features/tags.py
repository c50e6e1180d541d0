"""
Hobby/interest tag overlap.

Tags are compared case-insensitively; the score is the Jaccard index of the two sets.
"""

from __future__ import annotations

from typing import Iterable

from colleaguematch.domain.models import Profile


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """|A ∩ B| / |A ∪ B| over lower-cased tags; 0.0 when either side is empty."""
    left = {t.strip().lower() for t in a if t and t.strip()}
    right = {t.strip().lower() for t in b if t and t.strip()}
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


def common_tags(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Tags of `a` (original spelling, original order) that also appear in `b`."""
    right = {t.strip().lower() for t in b if t}
    return [t for t in a if t and t.strip().lower() in right]


def score_tag_overlap(user: Profile, candidate: Profile) -> tuple[float, dict, list[str]]:
    score = jaccard(user.hobbies, candidate.hobbies)
    shared = common_tags(user.hobbies, candidate.hobbies)

    reasons = ["공통 관심사: " + ", ".join(shared[:5])] if shared else []
    details = {
        "common_tags": shared,
        "user_tag_count": len(user.hobbies),
        "candidate_tag_count": len(candidate.hobbies),
    }
    return score, details, reasons

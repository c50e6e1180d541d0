# src/colleaguematch/features/preference_match.py
"""
Stated-preference match (candidate-level).

Measures how well a candidate fits the viewer's stated preferences:
- Every populated preference list (departments, job roles, locations, MBTI types) is one
  criterion; the candidate matches it by being a member of the list.
- When no list is populated, the viewer's own attributes act as implicit preferences
  ("someone like me"), except that `prefer_cross_department` turns the department
  criterion into "works in a different department".

Score = matched criteria / criteria. With no criteria at all the score is 0.0.
"""

from __future__ import annotations

from colleaguematch.domain.models import MatchPreferences, Profile
from colleaguematch.features.attributes import normalize_value, in_list


def _explicit_criteria(candidate: Profile, preferences: MatchPreferences) -> dict[str, bool]:
    criteria: dict[str, bool] = {}
    if preferences.preferred_departments:
        criteria["department"] = in_list(candidate.department, preferences.preferred_departments)
    if preferences.preferred_job_roles:
        criteria["job_role"] = in_list(candidate.job_role, preferences.preferred_job_roles)
    if preferences.preferred_locations:
        criteria["location"] = in_list(candidate.office_location, preferences.preferred_locations)
    if preferences.preferred_mbti_types:
        criteria["mbti"] = candidate.mbti is not None and candidate.mbti in preferences.preferred_mbti_types
    return criteria


def _implicit_criteria(user: Profile, candidate: Profile, preferences: MatchPreferences) -> dict[str, bool]:
    criteria: dict[str, bool] = {}
    if normalize_value(user.department) is not None:
        same = normalize_value(user.department) == normalize_value(candidate.department)
        if preferences.prefer_cross_department:
            criteria["department"] = normalize_value(candidate.department) is not None and not same
        else:
            criteria["department"] = same
    if normalize_value(user.job_role) is not None:
        criteria["job_role"] = normalize_value(user.job_role) == normalize_value(candidate.job_role)
    if normalize_value(user.office_location) is not None:
        criteria["location"] = normalize_value(user.office_location) == normalize_value(candidate.office_location)
    if user.mbti is not None:
        criteria["mbti"] = user.mbti == candidate.mbti
    return criteria


def score_preference_match(
    user: Profile, candidate: Profile, *, preferences: MatchPreferences
) -> tuple[float, dict, list[str]]:
    explicit = preferences.has_explicit_lists()
    criteria = (
        _explicit_criteria(candidate, preferences)
        if explicit
        else _implicit_criteria(user, candidate, preferences)
    )

    matched = [name for name, ok in criteria.items() if ok]
    score = len(matched) / len(criteria) if criteria else 0.0

    reasons: list[str] = []
    if explicit and matched:
        reasons.append("선호 조건 일치: " + ", ".join(matched))

    details = {
        "mode": "explicit" if explicit else "implicit",
        "criteria": criteria,
        "matched": matched,
    }
    return score, details, reasons

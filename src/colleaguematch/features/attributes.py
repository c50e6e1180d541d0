"""
Categorical attribute matching (job role, department, office location).

Values are compared as written (case-sensitive, surrounding whitespace ignored).
Default rule: equal values score 1.0, different values 0.0, and a value missing on
either side scores 0.0. When the viewer listed preferred values for a dimension, a
candidate in that list scores 1.0; anyone else falls back to the default rule.

Department has one extra mode: with `prefer_cross_department` and no preferred
department list, a *different* department is the match.
"""

from __future__ import annotations

from colleaguematch.config.settings import Settings
from colleaguematch.domain.models import MatchPreferences, Profile


def normalize_value(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def in_list(value: str | None, options: list[str]) -> bool:
    key = normalize_value(value)
    return key is not None and key in {normalize_value(o) for o in options}


def _equality_score(
    user_value: str | None, candidate_value: str | None, preferred: list[str]
) -> tuple[float, dict]:
    left, right = normalize_value(user_value), normalize_value(candidate_value)
    if left is None or right is None:
        return 0.0, {"rule": "missing"}
    if preferred and in_list(candidate_value, preferred):
        return 1.0, {"rule": "preferred_list"}
    return (1.0 if left == right else 0.0), {"rule": "equality"}


def score_job_role(
    user: Profile, candidate: Profile, *, preferences: MatchPreferences
) -> tuple[float, dict, list[str]]:
    score, details = _equality_score(user.job_role, candidate.job_role, preferences.preferred_job_roles)
    details.update({"user_value": user.job_role, "candidate_value": candidate.job_role})
    reasons = [f"직군: {candidate.job_role}"] if score >= 1.0 else []
    return score, details, reasons


def score_location(
    user: Profile, candidate: Profile, *, preferences: MatchPreferences
) -> tuple[float, dict, list[str]]:
    score, details = _equality_score(
        user.office_location, candidate.office_location, preferences.preferred_locations
    )
    details.update({"user_value": user.office_location, "candidate_value": candidate.office_location})
    reasons = [f"근무지: {candidate.office_location}"] if score >= 1.0 else []
    return score, details, reasons


def score_department(
    user: Profile, candidate: Profile, *, preferences: MatchPreferences, settings: Settings
) -> tuple[float, dict, list[str]]:
    if preferences.prefer_cross_department and not preferences.preferred_departments:
        left, right = normalize_value(user.department), normalize_value(candidate.department)
        if left is None or right is None:
            score, details = 0.0, {"rule": "missing"}
        else:
            rule = settings.scoring.cross_department
            score = rule.different if left != right else rule.same
            details = {"rule": "cross_department"}
    else:
        score, details = _equality_score(
            user.department, candidate.department, preferences.preferred_departments
        )

    details.update({"user_value": user.department, "candidate_value": candidate.department})
    reasons: list[str] = []
    if score >= 1.0:
        if details["rule"] == "cross_department":
            reasons.append(f"다른 부서: {candidate.department}")
        else:
            reasons.append(f"부서: {candidate.department}")
    return score, details, reasons

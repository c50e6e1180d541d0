"""
MBTI compatibility.

One letter-position rule is used everywhere (compatibility scoring and semantic search):
- identical codes -> `exact`
- at least three of four positions equal (compared independently) -> `three_letters`
- same first letter (E/I) -> `first_letter`
- otherwise 0.0

Missing or invalid codes always score 0.0.
"""

from __future__ import annotations

from colleaguematch.config.settings import MbtiScoreSettings, Settings
from colleaguematch.domain.models import Profile, normalize_mbti


def mbti_compatibility(a: str | None, b: str | None, rule: MbtiScoreSettings | None = None) -> float:
    rule = rule or MbtiScoreSettings()
    left = normalize_mbti(a)
    right = normalize_mbti(b)
    if left is None or right is None:
        return 0.0
    if left == right:
        return rule.exact

    same_positions = sum(1 for x, y in zip(left, right) if x == y)
    if same_positions >= 3:
        return rule.three_letters
    if left[0] == right[0]:
        return rule.first_letter
    return 0.0


def score_mbti(user: Profile, candidate: Profile, *, settings: Settings) -> tuple[float, dict, list[str]]:
    score = mbti_compatibility(user.mbti, candidate.mbti, settings.scoring.mbti)

    reasons: list[str] = []
    if score >= settings.scoring.mbti.exact:
        reasons.append("같은 MBTI 유형")
    elif score >= settings.scoring.mbti.three_letters:
        reasons.append("비슷한 성향의 MBTI")

    details = {"user_mbti": user.mbti, "candidate_mbti": candidate.mbti}
    return score, details, reasons

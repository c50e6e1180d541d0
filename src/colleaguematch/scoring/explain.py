"""
Match explanations.

Turns a `MatchBreakdown` plus the two profiles into audience-facing text:
- `summary`: one encouraging sentence, never a number
- `highlights`: the strongest dimensions above their notable thresholds, plus the
  collaboration-style and strengths embedding slots when they stand out
- `conversation_starters`: advisory ice-breakers from shared tags and attributes
- `details`: label/value rows for UI panels

Only attributes still present on the (redacted) candidate are mentioned, so private
fields never surface here.

`one_line_summary` is the compact numeric form used by the CLI.
"""

from __future__ import annotations

from colleaguematch.config.settings import Settings, get_settings
from colleaguematch.domain.models import MatchBreakdown, MatchDetail, MatchExplanation, Profile
from colleaguematch.features.attributes import normalize_value
from colleaguematch.features.tags import common_tags

GENERIC_SUMMARY = "함께 일하기 좋은 동료일 수 있습니다"

GENERIC_STARTERS: tuple[str, ...] = (
    "요즘 회사에서 어떤 일을 주로 하고 계신가요?",
    "회사 생활하시면서 가장 재미있었던 프로젝트가 있으신가요?",
)

TAG_STARTERS: dict[str, str] = {
    "러닝": "좋아하는 러닝 코스나 대회 경험에 대해 이야기해보세요",
    "등산": "최근에 다녀온 산이나 추천하고 싶은 코스를 물어보세요",
    "독서": "최근 읽은 책을 서로 추천해보세요",
    "게임": "요즘 즐기는 게임에 대해 이야기해보세요",
    "사이드프로젝트": "진행 중인 사이드프로젝트에 대해 이야기해보세요",
    "커피챗": "가볍게 커피챗 일정을 잡아보세요",
    "여행": "가장 기억에 남는 여행지나 가고 싶은 곳을 이야기해보세요",
    "음악": "요즘 즐겨 듣는 음악을 공유해보세요",
    "요리": "좋아하는 요리나 회사 근처 맛집을 이야기해보세요",
    "영화": "최근 본 영화에 대해 이야기해보세요",
    "헬스": "운동 루틴이나 목표에 대해 이야기해보세요",
    "네트워킹": "관심 있는 커뮤니티나 모임에 대해 이야기해보세요",
}

DIMENSION_LABELS: dict[str, str] = {
    "embedding": "업무 스타일",
    "tag": "관심사",
    "mbti": "MBTI",
    "job_role": "직군",
    "department": "부서",
    "location": "근무지",
    "preference": "선호 조건",
}

SLOT_LABELS: dict[str, str] = {
    "collaboration_style": "협업 스타일",
    "strengths": "강점",
    "preferred_people_type": "선호 동료 유형",
}


def _same(a: str | None, b: str | None) -> bool:
    left = normalize_value(a)
    return left is not None and left == normalize_value(b)


def _notable_dimensions(breakdown: MatchBreakdown, settings: Settings) -> list[tuple[str, float]]:
    thresholds = settings.explain.notable_thresholds
    notable = [
        (name, score)
        for name, score in breakdown.components().items()
        if score > 0 and score >= thresholds.get(name, 1.0)
    ]
    # Stable: ties keep the canonical dimension order.
    notable.sort(key=lambda item: item[1], reverse=True)
    return notable


def _slot_reason(slot: str, score: float) -> str:
    if slot == "collaboration_style":
        if score > 0.8:
            return "협업 방식이 매우 비슷합니다"
        if score > 0.7:
            return "비슷한 협업 스타일을 가지고 있습니다"
        return "일부 협업 방식에서 유사점이 있습니다"
    if slot == "strengths":
        if score > 0.8:
            return "비슷한 강점과 역량을 보유하고 있습니다"
        if score > 0.6:
            return "일부 강점 영역에서 공통점이 있습니다"
        return "상호 보완적인 강점을 가지고 있습니다"
    return "원하는 동료상이 비슷합니다"


def _notable_slots(
    breakdown: MatchBreakdown, candidate: Profile, settings: Settings
) -> list[tuple[str, float]]:
    notable = []
    for slot, threshold in settings.explain.slot_thresholds.items():
        score = breakdown.embedding_slots.get(slot) if slot in SLOT_LABELS else None
        # A redacted candidate no longer carries its private slots.
        if score is None or getattr(candidate.embeddings, slot, None) is None:
            continue
        if score > threshold:
            notable.append((slot, score))
    return notable


def _highlight(name: str, user: Profile, candidate: Profile, shared: list[str]) -> str:
    if name == "embedding":
        return "업무 스타일과 가치관이 비슷해요"
    if name == "tag":
        if shared:
            return f"{', '.join(shared[:3])}에 함께 관심이 있어요"
        return "관심사가 비슷해요"
    if name == "mbti":
        if candidate.mbti and candidate.mbti == user.mbti:
            return f"같은 {candidate.mbti} 유형이에요"
        return "MBTI 성향이 잘 맞아요"
    if name == "job_role":
        return f"같은 직군({candidate.job_role})에서 일해요" if candidate.job_role else "직군이 잘 맞아요"
    if name == "department":
        if _same(user.department, candidate.department):
            return f"같은 부서({candidate.department})예요"
        if candidate.department:
            return f"{candidate.department}의 새로운 시각을 나눌 수 있어요"
        return "부서 조건이 잘 맞아요"
    if name == "location":
        if candidate.office_location:
            return f"같은 근무지({candidate.office_location})에서 일해요"
        return "근무지가 가까워요"
    return "원하시는 조건에 잘 맞아요"


def _summary_clause(name: str, user: Profile, candidate: Profile, shared: list[str]) -> str:
    if name == "embedding":
        return "업무 스타일이 비슷합니다"
    if name == "tag":
        return "여러 관심사를 공유합니다" if len(shared) >= 3 else "공통 관심사가 있습니다"
    if name == "mbti":
        return "성향이 잘 맞습니다"
    if name == "job_role":
        return "같은 직군에서 일합니다"
    if name == "department":
        if _same(user.department, candidate.department):
            return "같은 부서에서 일합니다"
        return "다른 부서의 시각을 나눌 수 있습니다"
    if name == "location":
        return "같은 곳에서 근무합니다"
    return "선호하는 조건에 잘 맞습니다"


def _conversation_starters(
    breakdown: MatchBreakdown, user: Profile, candidate: Profile, shared: list[str], settings: Settings
) -> list[str]:
    starters: list[str] = []
    for tag in shared:
        # Starters carry no numbers.
        if any(ch.isdigit() for ch in tag):
            continue
        starters.append(TAG_STARTERS.get(tag, f"{tag}에 대해 이야기해보세요"))

    thresholds = settings.explain.notable_thresholds
    if breakdown.job_role >= thresholds.get("job_role", 1.0) and _same(user.job_role, candidate.job_role):
        starters.append("같은 직군으로서 요즘 관심 있는 기술이나 업무 트렌드를 나눠보세요")
    if breakdown.mbti >= thresholds.get("mbti", 1.0):
        starters.append("서로 선호하는 협업 방식에 대해 이야기해보세요")

    if not starters:
        starters.extend(GENERIC_STARTERS)

    unique = list(dict.fromkeys(starters))
    return unique[: settings.explain.max_conversation_starters]


def _detail_value(name: str, score: float, user: Profile, candidate: Profile, shared: list[str]) -> str:
    if name == "embedding":
        if score >= 0.8:
            return "매우 비슷함"
        if score >= 0.6:
            return "비슷함"
        return "보통" if score > 0 else "정보 없음"
    if name == "tag":
        return ", ".join(shared) if shared else "없음"
    if name == "mbti":
        return f"{user.mbti or '-'} / {candidate.mbti or '-'}"
    if name == "job_role":
        return candidate.job_role or "-"
    if name == "department":
        return candidate.department or "-"
    if name == "location":
        return candidate.office_location or "-"
    if score >= 1.0:
        return "일치"
    return "부분 일치" if score > 0 else "불일치"


def explain_match(
    user: Profile,
    candidate: Profile,
    breakdown: MatchBreakdown,
    *,
    settings: Settings | None = None,
) -> MatchExplanation:
    settings = settings or get_settings()
    shared = common_tags(candidate.hobbies, user.hobbies)
    slots = _notable_slots(breakdown, candidate, settings)
    notable = _notable_dimensions(breakdown, settings) + slots
    notable.sort(key=lambda item: item[1], reverse=True)

    highlights = [
        _slot_reason(name, score) if name in SLOT_LABELS else _highlight(name, user, candidate, shared)
        for name, score in notable[: settings.explain.max_highlights]
    ]

    clauses = [
        _slot_reason(name, score) if name in SLOT_LABELS else _summary_clause(name, user, candidate, shared)
        for name, score in notable[:2]
    ]
    summary = ", ".join(clauses) if clauses else GENERIC_SUMMARY

    details = [
        MatchDetail(
            dimension=name,
            label=DIMENSION_LABELS[name],
            value=_detail_value(name, score, user, candidate, shared),
            score=score,
        )
        for name, score in breakdown.components().items()
    ]
    details.extend(
        MatchDetail(dimension=name, label=SLOT_LABELS[name], value=_slot_reason(name, score), score=score)
        for name, score in slots
    )

    return MatchExplanation(
        summary=summary,
        highlights=highlights,
        conversation_starters=_conversation_starters(breakdown, user, candidate, shared, settings),
        details=details,
    )


def one_line_summary(breakdown: MatchBreakdown) -> str:
    """Render a compact single-line summary for a score breakdown."""
    parts = [f"total={breakdown.total:.3f}"]
    for name, score in breakdown.components().items():
        parts.append(f"{name}={score:.3f}")
    return " | ".join(parts)

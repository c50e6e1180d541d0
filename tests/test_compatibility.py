import pytest

from colleaguematch.config.settings import get_settings
from colleaguematch.core.vectors import EmbeddingDimensionError
from colleaguematch.domain.models import MatchPreferences, MatchWeights, Profile
from colleaguematch.features.mbti import mbti_compatibility
from colleaguematch.features.preference_match import score_preference_match
from colleaguematch.scoring.compatibility import resolve_match_weights, score_compatibility


def _profile(user_id: str, **kwargs) -> Profile:
    base = {
        "department": "플랫폼개발팀",
        "job_role": "백엔드",
        "office_location": "판교",
        "mbti": "INTJ",
        "hobbies": ["러닝", "독서"],
        "embeddings": {"combined": [1.0, 0.0, 0.0]},
    }
    base.update(kwargs)
    return Profile(user_id=user_id, **base)


def test_identical_profiles_score_the_sum_of_weights():
    settings = get_settings()
    user = _profile("u1")
    candidate = _profile("u2")

    breakdown = score_compatibility(user, candidate, settings=settings)

    # Every component is a perfect match, so the total equals the configured weight sum (1.0).
    for name, score in breakdown.components().items():
        assert score == pytest.approx(1.0), name
    assert breakdown.total == pytest.approx(sum(settings.scoring.weights.values()))


def test_disjoint_profiles_score_zero():
    user = _profile("u1")
    candidate = _profile(
        "u2",
        department="마케팅팀",
        job_role="디자이너",
        office_location="강남",
        mbti="ESFP",
        hobbies=["골프"],
        embeddings={"combined": [-1.0, 0.0, 0.0]},
    )

    breakdown = score_compatibility(user, candidate, settings=get_settings())
    assert breakdown.total == pytest.approx(0.0)
    assert all(score == pytest.approx(0.0) for score in breakdown.components().values())


def test_missing_attributes_score_zero_without_failing():
    user = _profile("u1")
    candidate = Profile(user_id="u2")

    breakdown = score_compatibility(user, candidate, settings=get_settings())
    assert breakdown.embedding == 0.0
    assert breakdown.department == 0.0
    assert breakdown.mbti == 0.0
    assert breakdown.total == pytest.approx(0.0)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("INTJ", "INTJ", 1.0),
        ("intj", "INTJ", 1.0),
        ("INTJ", "INTP", 0.7),
        # Three equal positions count even when the first letter differs.
        ("INTJ", "ENTJ", 0.7),
        ("INTJ", "ISFP", 0.3),
        ("INTJ", "ENFP", 0.0),
        (None, "INTJ", 0.0),
        ("XXXX", "INTJ", 0.0),
    ],
)
def test_mbti_compatibility_rule(a, b, expected):
    assert mbti_compatibility(a, b) == pytest.approx(expected)


def test_cross_department_preference_flips_the_department_rule():
    settings = get_settings()
    prefs = MatchPreferences(prefer_cross_department=True)
    user = _profile("u1")

    other_team = score_compatibility(user, _profile("u2", department="디자인팀"), prefs, settings=settings)
    same_team = score_compatibility(user, _profile("u3"), prefs, settings=settings)

    assert other_team.department == pytest.approx(1.0)
    assert same_team.department == pytest.approx(0.0)


def test_preferred_list_membership_beats_equality():
    prefs = MatchPreferences(preferred_departments=["디자인팀"])
    user = _profile("u1")
    candidate = _profile("u2", department="디자인팀")

    breakdown = score_compatibility(user, candidate, prefs, settings=get_settings())
    assert breakdown.department == pytest.approx(1.0)
    # Only the department list was stated, so it is the only preference criterion.
    assert breakdown.preference == pytest.approx(1.0)


def test_categorical_attributes_compare_case_sensitively():
    user = _profile("u1", department="Platform", job_role="Backend", office_location="Pangyo")
    candidate = _profile("u2", department="platform", job_role="backend", office_location="pangyo")

    breakdown = score_compatibility(user, candidate, settings=get_settings())
    assert (breakdown.department, breakdown.job_role, breakdown.location) == (0.0, 0.0, 0.0)

    # Surrounding whitespace is not part of the value.
    padded = _profile("u3", department=" Platform ", job_role="Backend", office_location="Pangyo")
    breakdown = score_compatibility(user, padded, settings=get_settings())
    assert breakdown.department == pytest.approx(1.0)


def test_preferred_list_membership_is_case_sensitive():
    prefs = MatchPreferences(preferred_departments=["Design"])
    candidate = _profile("u2", department="design")

    breakdown = score_compatibility(_profile("u1"), candidate, prefs, settings=get_settings())
    assert breakdown.department == 0.0
    assert breakdown.preference == 0.0


def test_preference_match_uses_own_attributes_when_no_lists_are_given():
    user = _profile("u1")
    candidate = _profile("u2", office_location="강남")

    score, details, _ = score_preference_match(user, candidate, preferences=MatchPreferences())
    assert details["mode"] == "implicit"
    assert score == pytest.approx(3 / 4)


def test_preference_match_without_any_criteria_is_zero():
    score, details, reasons = score_preference_match(
        Profile(user_id="u1"), _profile("u2"), preferences=MatchPreferences()
    )
    assert score == 0.0
    assert details["criteria"] == {}
    assert reasons == []


def test_mismatched_embedding_lengths_raise():
    user = _profile("u1", embeddings={"combined": [1.0, 0.0]})
    candidate = _profile("u2")

    with pytest.raises(EmbeddingDimensionError):
        score_compatibility(user, candidate, settings=get_settings())


def test_weight_override_changes_total_linearly():
    settings = get_settings()
    user = _profile("u1")
    candidate = _profile("u2", hobbies=["골프"])

    base = score_compatibility(user, candidate, settings=settings)
    boosted_weights = resolve_match_weights(settings, MatchWeights(tag=0.5, mbti=0.0))
    boosted = score_compatibility(user, candidate, weights=boosted_weights, settings=settings)

    # tag is 0 here, so only dropping the MBTI weight (1.0 * 0.12) moves the total.
    assert boosted.tag == pytest.approx(0.0)
    assert base.total - boosted.total == pytest.approx(settings.scoring.weights["mbti"])


def test_resolve_match_weights_rejects_unknown_and_negative_weights():
    settings = get_settings()
    with pytest.raises(ValueError, match=r"bogus"):
        resolve_match_weights(settings, {"bogus": 0.1})
    with pytest.raises(ValueError, match=r"tag"):
        resolve_match_weights(settings, {"tag": -0.1})


def test_normalize_policy_rescales_weights_to_one():
    settings = get_settings()
    settings = settings.model_copy(
        update={"scoring": settings.scoring.model_copy(update={"weight_policy": "normalize"})}
    )

    weights = resolve_match_weights(settings, {"tag": 1.25})
    assert sum(weights.values()) == pytest.approx(1.0)
    assert weights["tag"] == pytest.approx(1.25 / 2.0)

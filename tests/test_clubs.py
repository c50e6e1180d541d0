import pytest

from colleaguematch.config.settings import get_settings
from colleaguematch.domain.models import Club, ClubMembership, Profile
from colleaguematch.features.clubs import (
    score_activity,
    score_category_preference,
    score_member_composition,
    score_social_graph,
)
from colleaguematch.features.tags import jaccard
from colleaguematch.recommender.recommend import recommend_clubs
from colleaguematch.scoring.clubs import FALLBACK_REASON, score_club


def _viewer(**kwargs) -> Profile:
    base = {"department": "플랫폼개발팀", "job_role": "백엔드", "hobbies": ["러닝", "테니스"]}
    base.update(kwargs)
    return Profile(user_id="me", **base)


@pytest.mark.parametrize(
    "count, expected",
    [(0, 0.0), (1, 0.2), (4, 0.2), (5, 0.4), (10, 0.6), (29, 0.6), (30, 0.8), (49, 0.8), (50, 1.0), (500, 1.0)],
)
def test_activity_step_function(count, expected):
    club = Club(id="c1", name="러닝크루", recent_activity_count=count)
    score, _, _ = score_activity(club, settings=get_settings().clubs)
    assert score == pytest.approx(expected)


def test_social_graph_counts_only_active_members_of_this_club_and_saturates():
    club = Club(id="c1", name="러닝크루")
    recommended = [f"u{i}" for i in range(8)]
    memberships = [ClubMembership(user_id=f"u{i}", club_id="c1") for i in range(7)]
    memberships.append(ClubMembership(user_id="u7", club_id="c1", status="pending"))
    memberships.append(ClubMembership(user_id="u7", club_id="c2"))

    score, details, _ = score_social_graph(
        club, recommended_user_ids=recommended, memberships=memberships, cap=5
    )
    assert details["matched_count"] == 7
    assert score == pytest.approx(1.0)

    score, details, _ = score_social_graph(
        club, recommended_user_ids=["u0", "u1"], memberships=memberships, cap=5
    )
    assert details["matched_count"] == 2
    assert score == pytest.approx(0.4)


def test_social_graph_without_recommendations_is_zero():
    club = Club(id="c1", name="러닝크루")
    score, details, _ = score_social_graph(
        club, recommended_user_ids=[], memberships=[ClubMembership(user_id="u1", club_id="c1")], cap=5
    )
    assert score == 0.0
    assert details["matched_count"] == 0


def test_member_composition_counts_members_without_comparable_data_as_zero():
    viewer = _viewer(hobbies=["러닝"])
    twin = Profile(user_id="u1", department="플랫폼개발팀", hobbies=["러닝"])
    blank = Profile(user_id="u2")

    score, details, _ = score_member_composition(viewer, [twin, blank], settings=get_settings().clubs)
    assert details["comparable_members"] == 1
    assert score == pytest.approx(0.5)


def test_category_preference_neutral_and_matching():
    cfg = get_settings().clubs
    sports = Club(id="c1", name="테니스 동호회", category="스포츠")

    # No hobbies, or a category without keywords, is neutral rather than negative.
    assert score_category_preference(_viewer(hobbies=[]), sports, settings=cfg)[0] == pytest.approx(0.5)
    other = Club(id="c2", name="잡담방", category="기타")
    assert score_category_preference(_viewer(), other, settings=cfg)[0] == pytest.approx(0.5)

    assert score_category_preference(_viewer(), sports, settings=cfg)[0] == pytest.approx(1.0)
    assert score_category_preference(_viewer(hobbies=["러닝", "요리"]), sports, settings=cfg)[0] == pytest.approx(0.5)


def test_score_club_without_signals_uses_fallback_reason():
    settings = get_settings()
    club = Club(id="c1", name="새 모임")

    rec = score_club(_viewer(hobbies=[]), club, [], [], [], settings=settings)

    assert rec.reasons == [FALLBACK_REASON]
    assert rec.social_match_count == 0
    # Only the neutral category score contributes.
    assert rec.total == pytest.approx(0.5 * settings.clubs.weights["category_preference"])


def test_score_club_reasons_are_capped():
    settings = get_settings()
    club = Club(id="c1", name="테니스 동호회", category="스포츠", tags=["러닝", "테니스"], recent_activity_count=60)
    member = Profile(user_id="u1", department="플랫폼개발팀", job_role="백엔드", hobbies=["러닝", "테니스"])
    memberships = [ClubMembership(user_id="u1", club_id="c1")]

    rec = score_club(_viewer(), club, [member], ["u1"], memberships, settings=settings)

    assert rec.social_match_count == 1
    assert len(rec.reasons) == settings.clubs.max_reasons
    assert rec.breakdown.tag_match == pytest.approx(1.0)


def test_recommend_clubs_excludes_joined_clubs_by_default():
    settings = get_settings()
    viewer = _viewer()
    clubs = [
        Club(id="joined", name="이미 가입한 모임", tags=["러닝"]),
        Club(id="pending", name="가입 대기 모임", tags=["러닝"]),
        Club(id="open", name="새 모임", tags=["테니스"]),
    ]
    memberships = [
        ClubMembership(user_id="me", club_id="joined"),
        ClubMembership(user_id="me", club_id="pending", status="pending"),
    ]

    result = recommend_clubs(viewer, clubs, memberships, [viewer], recommended_user_ids=[], settings=settings)
    ids = [r.club.id for r in result.results]
    assert "joined" not in ids
    assert set(ids) == {"pending", "open"}
    assert result.meta["excluded_joined"] == 1

    result = recommend_clubs(
        viewer, clubs, memberships, [viewer], recommended_user_ids=[], exclude_joined=False, settings=settings
    )
    assert {r.club.id for r in result.results} == {"joined", "pending", "open"}


def test_recommend_clubs_derives_social_graph_from_colleague_recommendations():
    settings = get_settings()
    viewer = _viewer(embeddings={"combined": [1.0, 0.0]})
    colleague = Profile(
        user_id="u1",
        department="플랫폼개발팀",
        job_role="백엔드",
        hobbies=["러닝"],
        embeddings={"combined": [1.0, 0.0]},
    )
    clubs = [Club(id="c1", name="러닝크루", category="스포츠", tags=["러닝"])]
    memberships = [ClubMembership(user_id="u1", club_id="c1")]

    result = recommend_clubs(viewer, clubs, memberships, [viewer, colleague], settings=settings)

    top = result.results[0]
    assert top.social_match_count == 1
    assert result.meta["recommended_user_count"] == 1
    assert any("1명" in reason for reason in top.reasons)


def test_jaccard_properties():
    a, b = ["러닝", "독서"], ["독서", "요리", "게임"]
    assert jaccard(a, a) == 1.0
    assert jaccard(a, []) == 0.0
    assert jaccard(a, b) == jaccard(b, a) == pytest.approx(1 / 4)
    # Case-insensitive comparison.
    assert jaccard(["React"], ["react"]) == 1.0

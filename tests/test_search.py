import pytest

from colleaguematch.config.settings import Settings, get_settings
from colleaguematch.core.vectors import EmbeddingDimensionError
from colleaguematch.domain.models import ExpandedQuery, Profile, SearchRequest
from colleaguematch.ingestion.embedding_client import EmbeddingUnavailableError
from colleaguematch.recommender.recommend import search_colleagues
from colleaguematch.search.query import analyze_query, classify_query_intent, expand_query
from colleaguematch.search.semantic import mbti_signal, search_weights, semantic_search, tag_signal


def _candidates() -> list[Profile]:
    return [
        Profile(
            user_id="fe",
            name="김프론트",
            job_role="프론트엔드",
            tech_stack="React, TypeScript",
            hobbies=["독서"],
            mbti="INFP",
            embeddings={"combined": [1.0, 0.0]},
        ),
        Profile(
            user_id="be",
            name="박백엔드",
            job_role="백엔드",
            tech_stack="Java, Spring",
            mbti="ESTJ",
            embeddings={"combined": [0.0, 1.0]},
        ),
    ]


@pytest.mark.parametrize(
    "query, intent, confidence",
    [
        ("꼼꼼하고 성실한 사람", "personality", 0.9),
        ("react 개발자", "skill", 0.9),
        ("주말에 등산", "hobby", 0.7),
        ("안녕하세요", "general", 0.5),
    ],
)
def test_classify_query_intent(query, intent, confidence):
    settings = get_settings()
    got_intent, got_confidence = classify_query_intent(query, settings=settings)
    assert got_intent == intent
    assert got_confidence == pytest.approx(confidence)


def test_analyze_query_picks_strategy_from_length_and_vocabulary():
    settings = get_settings()
    assert analyze_query("react", settings=settings).suggested_strategy == "text_heavy"
    assert analyze_query("alpha beta gamma delta", settings=settings).suggested_strategy == "balanced"
    long_query = "팀에서 밝고 유쾌하게 소통하며 일하는 사람을 찾고 있어요"
    assert analyze_query(long_query, settings=settings).suggested_strategy == "vector_heavy"


def test_blended_search_weights_sum_to_one():
    weights = search_weights("text_heavy", "skill", settings=get_settings())
    assert sum(weights.values()) == pytest.approx(1.0)
    # 0.6 * 0.40 (text_heavy) + 0.4 * 0.50 (skill)
    assert weights["text"] == pytest.approx(0.44)


def test_search_weights_work_with_bare_settings():
    weights = search_weights("balanced", "general", settings=Settings())

    assert sum(weights.values()) == pytest.approx(1.0)
    assert weights["text"] == pytest.approx(0.25)


def test_expand_query_rejects_blank_queries():
    with pytest.raises(ValueError):
        expand_query("   ", settings=get_settings())


def test_fallback_expansion_uses_only_what_the_query_says():
    expanded = expand_query("INFP 같은 독서 좋아하는 사람", settings=get_settings())

    assert expanded.confidence == pytest.approx(0.5)
    assert expanded.suggested_mbti_types == ["INFP"]
    assert expanded.suggested_hobby_tags == ["독서"]
    assert expanded.query_intent == "hobby"
    assert len(expanded.search_keywords) <= get_settings().search.max_keywords


def test_exact_mode_keeps_every_token():
    expanded = expand_query("react 판교", mode="exact", settings=get_settings())
    assert expanded.confidence == 1.0
    assert expanded.search_keywords == ["react", "판교"]


def test_expander_output_is_validated_and_capped():
    def expander(query: str) -> dict:
        return {
            "expanded_description": "프론트엔드 개발자",
            "search_keywords": ["a1", "a2", "a3", "a4", "a5", "a6", "a7"],
            "suggested_mbti_types": ["enfp", "XXXX", "INTJ", "ISTP", "ESTJ", "ENTP"],
            "suggested_hobby_tags": ["독서", "하늘날기"],
        }

    expanded = expand_query("프론트 개발자", expander=expander, settings=get_settings())

    assert expanded.original_query == "프론트 개발자"
    assert expanded.search_keywords == ["a1", "a2", "a3", "a4", "a5"]
    assert expanded.suggested_mbti_types == ["ENFP", "INTJ", "ISTP", "ESTJ"]
    assert expanded.suggested_hobby_tags == ["독서"]


def test_failing_expander_falls_back_to_rules():
    def expander(query: str):
        raise RuntimeError("model unavailable")

    expanded = expand_query("react 개발자", expander=expander, settings=get_settings())
    assert expanded.confidence == pytest.approx(0.5)
    assert expanded.search_keywords == ["react", "개발자"]


def test_semantic_search_ranks_literal_keyword_hits_and_drops_low_scores():
    settings = get_settings()
    expanded = expand_query("react", mode="exact", settings=settings)

    results = semantic_search(_candidates(), expanded, strategy="text_heavy", settings=settings)

    assert [r.profile.user_id for r in results] == ["fe"]
    top = results[0]
    assert top.signals.text == pytest.approx(1.0)
    assert top.signals.vector == 0.0
    assert top.reasons[0] == "기술 스택 일치"


def test_vector_signal_uses_query_embedding():
    settings = get_settings()
    expanded = ExpandedQuery(original_query="비슷한 사람")

    results = semantic_search(_candidates(), expanded, [1.0, 0.0], min_score=0.0, settings=settings)

    assert results[0].profile.user_id == "fe"
    assert results[0].signals.vector == pytest.approx(1.0)
    assert results[1].signals.vector == pytest.approx(0.5)


def test_query_embedding_length_mismatch_raises():
    expanded = ExpandedQuery(original_query="q")
    with pytest.raises(EmbeddingDimensionError):
        semantic_search(_candidates(), expanded, [1.0, 0.0, 0.0], settings=get_settings())


def test_mbti_and_tag_signals():
    settings = get_settings()
    candidate = Profile(user_id="x", mbti="INTP", hobbies=["독서"])

    assert mbti_signal(candidate, ExpandedQuery(original_query="q", suggested_mbti_types=["INTJ"]), settings=settings) == pytest.approx(0.7)
    # Hobby intent without suggested tags still gives people with hobbies a small signal.
    assert tag_signal(candidate, ExpandedQuery(original_query="q", query_intent="hobby")) == pytest.approx(0.2)
    assert tag_signal(candidate, ExpandedQuery(original_query="q")) == 0.0


def test_search_colleagues_excludes_viewer_and_reports_embedding_failure():
    def embed_query(text: str) -> list[float]:
        raise EmbeddingUnavailableError("no key")

    request = SearchRequest(query="react", viewer_id="be", candidates=_candidates(), mode="exact")
    response = search_colleagues(request, settings=get_settings(), embed_query=embed_query)

    assert all(r.profile.user_id != "be" for r in response.results)
    assert response.strategy == "text_heavy"
    assert response.meta["vector_signal"] is False
    assert [w["code"] for w in response.meta["warnings"]] == ["QUERY_EMBEDDING_UNAVAILABLE"]

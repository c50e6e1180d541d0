import math

import pytest

from colleaguematch.core.vectors import (
    EmbeddingDimensionError,
    cosine_similarity,
    mean_vector,
    parse_embedding,
)


def test_cosine_similarity_basic_angles():
    assert cosine_similarity([1.0, 0.0], [2.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 3.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


def test_cosine_similarity_zero_vector_is_zero():
    # A zero-magnitude vector has no direction; treat it as "no similarity" instead of NaN.
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


def test_cosine_similarity_rejects_mismatched_lengths():
    with pytest.raises(EmbeddingDimensionError, match=r"3 != 2"):
        cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0])


def test_mean_vector_is_elementwise():
    assert mean_vector([[1.0, 2.0], [3.0, 6.0]]) == [2.0, 4.0]


def test_mean_vector_requires_input_and_equal_lengths():
    with pytest.raises(ValueError):
        mean_vector([])
    with pytest.raises(EmbeddingDimensionError):
        mean_vector([[1.0, 2.0], [1.0]])


def test_parse_embedding_accepts_lists_and_json_strings():
    assert parse_embedding([1, 2]) == [1.0, 2.0]
    assert parse_embedding("[0.5, -0.25]") == [0.5, -0.25]


@pytest.mark.parametrize("raw", [None, "", "not json", "{}", [], ["a", "b"], 3])
def test_parse_embedding_returns_none_for_unusable_values(raw):
    assert parse_embedding(raw) is None


def test_cosine_similarity_stays_in_range_for_near_parallel_vectors():
    v = [0.1, 0.2, 0.3]
    assert -1.0 <= cosine_similarity(v, v) <= 1.0
    assert math.isclose(cosine_similarity(v, v), 1.0, rel_tol=1e-9)


def test_cosine_similarity_is_symmetric():
    a, b = [0.3, -1.2, 2.0], [1.5, 0.4, -0.7]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_results_are_plain_python_values():
    # Scores and vectors end up in Pydantic models and the JSON cache.
    score = cosine_similarity([0.2, 0.4, 0.1], [0.3, 0.1, 0.9])
    combined = mean_vector([[0.5, 1.0, 0.0], [1.5, 0.0, 2.0]])

    assert type(score) is float
    assert type(combined) is list and all(type(x) is float for x in combined)
    assert combined == pytest.approx([1.0, 0.5, 1.0])

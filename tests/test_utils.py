import numpy as np
import pytest

from cloudsql_vectorstore.components.vector_stores.utils import (
    cosine_similarity,
    maximal_marginal_relevance,
)


def test_cosine_similarity_matrix():
    result = cosine_similarity([[1.0, 0.0], [0.0, 2.0]], [[1.0, 0.0], [1.0, 1.0]])

    assert result.shape == (2, 2)
    assert result[0][0] == pytest.approx(1.0)
    assert result[1][0] == pytest.approx(0.0)
    assert result[1][1] == pytest.approx(1 / np.sqrt(2))


def test_cosine_similarity_zero_vector_is_zero():
    result = cosine_similarity([[0.0, 0.0]], [[1.0, 0.0]])
    assert result[0][0] == 0.0


def test_cosine_similarity_empty_and_mismatched():
    assert cosine_similarity([], [[1.0]]).size == 0
    with pytest.raises(ValueError):
        cosine_similarity([[1.0, 0.0]], [[1.0, 0.0, 0.0]])


CANDIDATES = [[1.0, 0.0], [0.99, 0.05], [0.0, 1.0], [0.7, 0.7]]


def test_mmr_lambda_one_is_relevance_order():
    assert maximal_marginal_relevance([1.0, 0.0], CANDIDATES, lambda_mult=1.0, k=4) == [0, 1, 3, 2]


def test_mmr_lambda_zero_maximizes_diversity():
    # 첫 선택은 관련성 항이 없어 모든 점수가 0이므로 첫 후보가 선택됩니다.
    selected = maximal_marginal_relevance([1.0, 0.0], CANDIDATES, lambda_mult=0.0, k=2)
    assert selected == [0, 2]


@pytest.mark.parametrize("k, expected_len", [(0, 0), (2, 2), (10, 4)])
def test_mmr_bounds(k, expected_len):
    selected = maximal_marginal_relevance([1.0, 0.0], CANDIDATES, k=k)
    assert len(selected) == expected_len
    assert len(set(selected)) == expected_len


def test_mmr_no_candidates():
    assert maximal_marginal_relevance([1.0, 0.0], [], k=3) == []

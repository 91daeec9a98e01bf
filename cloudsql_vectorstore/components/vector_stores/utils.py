# -*- coding: utf-8 -*-
"""MMR(Maximal Marginal Relevance) 재순위화에 쓰이는 벡터 연산."""

from typing import List, Sequence

import numpy as np


def cosine_similarity(x: Sequence, y: Sequence) -> np.ndarray:
    """
    두 행렬의 행 벡터들 사이의 코사인 유사도 행렬을 계산합니다.

    영벡터가 포함된 경우 해당 유사도는 0으로 처리합니다.

    Returns:
        np.ndarray: `(len(x), len(y))` 크기의 유사도 행렬.
    """
    x = np.atleast_2d(np.asarray(x, dtype=np.float64))
    y = np.atleast_2d(np.asarray(y, dtype=np.float64))
    if x.size == 0 or y.size == 0:
        return np.array([])
    if x.shape[1] != y.shape[1]:
        raise ValueError(
            f"Number of columns in X and Y must be the same. X has shape {x.shape} "
            f"and Y has shape {y.shape}."
        )

    x_norm = np.linalg.norm(x, axis=1)
    y_norm = np.linalg.norm(y, axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        similarity = np.dot(x, y.T) / np.outer(x_norm, y_norm)
    similarity[np.isnan(similarity) | np.isinf(similarity)] = 0.0
    return similarity


def maximal_marginal_relevance(
    query_embedding: Sequence[float],
    embedding_list: Sequence[Sequence[float]],
    lambda_mult: float = 0.5,
    k: int = 4,
) -> List[int]:
    """
    후보 임베딩 중에서 MMR 순서로 최대 `k`개를 골라 그 인덱스를 반환합니다.

    매 단계마다 아직 선택되지 않은 후보 c에 대해
    `lambda_mult * sim(query, c) - (1 - lambda_mult) * max(sim(c, s) for s in selected)`
    를 계산하고 가장 높은 후보를 선택합니다. 첫 단계에서 두 번째 항은 0입니다.
    점수가 같으면 입력 순서(거리 순위)가 앞선 후보를 고릅니다.
    유사도는 저장소의 거리 전략과 무관하게 항상 코사인 유사도를 사용합니다.
    """
    if k <= 0 or len(embedding_list) == 0:
        return []

    candidates = np.asarray(embedding_list, dtype=np.float64)
    query_similarity = cosine_similarity([query_embedding], candidates)[0]
    pairwise_similarity = cosine_similarity(candidates, candidates)

    selected: List[int] = []
    remaining = list(range(len(candidates)))
    # 각 후보가 지금까지 선택된 항목들과 가지는 최대 유사도
    max_redundancy = np.zeros(len(candidates))

    while remaining and len(selected) < k:
        redundancy = max_redundancy[remaining] if selected else np.zeros(len(remaining))
        scores = lambda_mult * query_similarity[remaining] - (1 - lambda_mult) * redundancy
        best = remaining[int(np.argmax(scores))]

        selected.append(best)
        remaining.remove(best)
        if len(selected) == 1:
            max_redundancy = pairwise_similarity[best].copy()
        else:
            max_redundancy = np.maximum(max_redundancy, pairwise_similarity[best])

    return selected

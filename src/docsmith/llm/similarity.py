"""Vector similarity helpers for embedding-based relationship discovery."""

import math
from collections.abc import Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity in [-1, 1]. A zero vector has similarity 0.0 with anything.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_similar(
    query: Sequence[float],
    candidates: Iterable[tuple[T, Sequence[float]]],
    threshold: float,
    max_results: int,
) -> list[tuple[T, float]]:
    """Rank candidates by similarity to query.

    Args:
        query: Query vector.
        candidates: (item, vector) pairs.
        threshold: Minimum similarity to keep a candidate.
        max_results: Maximum number of results.

    Returns:
        (item, score) pairs with score >= threshold, best first.
    """
    if max_results <= 0:
        return []
    scored = [
        (item, score)
        for item, vector in candidates
        if len(vector) == len(query)
        and (score := cosine_similarity(query, vector)) >= threshold
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:max_results]

"""
Retrieval Search - Similarity scoring between feature vectors.

Implements:
- Cosine similarity over the shared prefix of two vectors
- Length-ratio penalty on the count of nonzero features
- Combined score: cosine * (floor + (1 - floor) * length_ratio)
"""

import math
from typing import Sequence

DEFAULT_COSINE_FLOOR = 0.7


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Compute cosine similarity over the shared prefix of two vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        Cosine similarity between -1 and 1; 0.0 if either side has zero norm
    """
    length = min(len(vec_a), len(vec_b))

    dot_product = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for i in range(length):
        a = vec_a[i]
        b = vec_b[i]
        dot_product += a * b
        norm_a += a * a
        norm_b += b * b

    if norm_a == 0 or norm_b == 0:
        return 0.0

    # Rounding can push identical vectors a hair past 1.0.
    similarity = dot_product / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return max(-1.0, min(1.0, similarity))


def nonzero_count(vec: Sequence[float]) -> int:
    """Number of strictly positive entries."""
    return sum(1 for v in vec if v > 0)


def length_ratio(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Ratio of the smaller to the larger nonzero-feature count, in [0, 1]."""
    count_a = nonzero_count(vec_a)
    count_b = nonzero_count(vec_b)
    return min(count_a, count_b) / max(count_a, count_b, 1)


def score(
    vec_a: Sequence[float],
    vec_b: Sequence[float],
    cosine_floor: float = DEFAULT_COSINE_FLOOR,
) -> float:
    """
    Score two feature vectors, discounting feature-count mismatches.

    A short, feature-poor chunk keeps only cosine_floor of its cosine when
    matched against a feature-rich vector. Symmetric in its arguments, and
    within [0, 1] for non-negative vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector
        cosine_floor: Share of the cosine kept at the worst length ratio

    Returns:
        Similarity score
    """
    similarity = cosine_similarity(vec_a, vec_b)
    if similarity == 0.0:
        return 0.0
    penalty = min(1.0, cosine_floor + (1.0 - cosine_floor) * length_ratio(vec_a, vec_b))
    return similarity * penalty

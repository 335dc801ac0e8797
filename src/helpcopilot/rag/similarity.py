"""Cosine similarity ranking over in-memory embedding tables."""

from math import sqrt
from typing import Mapping, Sequence

from helpcopilot.rag.exceptions import DimensionMismatchError


def cosine_similarity(
    vec_a: Sequence[float], vec_b: Sequence[float], item_id: str | None = None
) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(len(vec_a), len(vec_b), item_id=item_id)

    dot = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = sqrt(sum(a * a for a in vec_a))
    norm_b = sqrt(sum(b * b for b in vec_b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank(
    query_vector: Sequence[float],
    candidates: Mapping[str, Sequence[float]],
    top_k: int,
) -> list[tuple[str, float]]:
    """Top-k candidates by cosine similarity to the query.

    Ties are broken by item_id ascending so results are reproducible.
    """
    if top_k <= 0:
        return []

    scored = [
        (item_id, cosine_similarity(query_vector, vector, item_id=item_id))
        for item_id, vector in candidates.items()
    ]
    scored.sort(key=lambda item: (-item[1], item[0]))
    return scored[:top_k]

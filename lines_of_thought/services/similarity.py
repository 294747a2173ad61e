"""
Cosine similarity over thought embeddings.

Vectorized with NumPy so a candidate can be compared against every root
thought in one pass.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np

from lines_of_thought.models.thought import SimilarityMatch, Thought


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Embedding dimensions differ: {va.shape} vs {vb.shape}")

    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / norm, -1.0, 1.0))


def cosine_similarities(query: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of ``query`` against each row of ``matrix``.

    Rows with zero norm score 0.0.
    """
    q = np.asarray(query, dtype=np.float64)
    if matrix.size == 0:
        return np.zeros(0)

    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(matrix, axis=1)
    denominators = row_norms * q_norm
    dots = matrix @ q

    scores = np.zeros(len(matrix))
    nonzero = denominators > 0
    scores[nonzero] = dots[nonzero] / denominators[nonzero]
    return np.clip(scores, -1.0, 1.0)


def comparable(thoughts: Iterable[Thought], dimensions: int) -> List[Thought]:
    """Thoughts whose embedding exists and matches the expected dimension."""
    return [
        t for t in thoughts
        if t.embedding is not None and len(t.embedding) == dimensions
    ]


def rank_by_similarity(
    embedding: Sequence[float],
    candidates: Iterable[Thought],
    threshold: Optional[float] = None,
) -> List[SimilarityMatch]:
    """
    Rank candidates by cosine similarity to ``embedding``, highest first.

    Candidates without a comparable embedding are skipped. When ``threshold``
    is given only matches strictly above it are returned.
    """
    pool = comparable(candidates, len(embedding))
    if not pool:
        return []

    matrix = np.asarray([t.embedding for t in pool], dtype=np.float64)
    scores = cosine_similarities(embedding, matrix)

    matches = [
        SimilarityMatch(thought=thought, similarity=float(score))
        for thought, score in zip(pool, scores)
        if threshold is None or score > threshold
    ]
    return sorted(matches, key=lambda m: m.similarity, reverse=True)

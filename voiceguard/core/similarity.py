# voiceguard/core/similarity.py

"""Cosine similarity between feature vectors."""

from __future__ import annotations

import numpy as np
from numpy.linalg import norm

from .errors import DimensionMismatchError, UndefinedSimilarityError


def _unit(vector: np.ndarray) -> np.ndarray:
    # Scale by the largest component first so norm() neither overflows
    # nor underflows for finite input
    peak = np.max(np.abs(vector))
    if not np.isfinite(peak):
        raise UndefinedSimilarityError("cosine similarity is undefined for non-finite values")
    if peak == 0.0:
        raise UndefinedSimilarityError("cosine similarity is undefined for a zero vector")
    scaled = vector / peak
    return scaled / norm(scaled)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine of the angle between two feature vectors, in [-1, 1].

    Raises:
        DimensionMismatchError: if the vectors differ in length
        UndefinedSimilarityError: if either vector has zero magnitude or
            contains NaN / infinite values
    """
    a = np.asarray(a, dtype=np.float64).reshape(-1)
    b = np.asarray(b, dtype=np.float64).reshape(-1)
    if a.size != b.size:
        raise DimensionMismatchError(a.size, b.size)
    if a.size == 0:
        raise UndefinedSimilarityError("cosine similarity is undefined for empty vectors")

    similarity = float(np.dot(_unit(a), _unit(b)))
    if not np.isfinite(similarity):
        raise UndefinedSimilarityError("cosine similarity produced a non-finite value")
    # rounding can push |cos| a hair past 1
    return float(np.clip(similarity, -1.0, 1.0))

"""Fixed-dimension vector helpers shared by the index, oracle, and tuner."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

VectorLike = Sequence[float] | np.ndarray


class DimensionMismatch(ValueError):
    """Raised when a vector does not match the corpus dimensionality."""


def as_vector(values: VectorLike, *, dimensions: int | None = None) -> np.ndarray:
    """Return ``values`` as a 1-D float64 array, validating its length.

    Vectors are never padded or truncated; a wrong length is rejected.
    """
    array = np.asarray(values, dtype=np.float64)
    if array.ndim != 1:
        raise DimensionMismatch(f"Vector must be one-dimensional; got shape {array.shape}")
    if dimensions is not None and array.shape[0] != dimensions:
        raise DimensionMismatch(
            f"Vector must have dimension {dimensions}; got {array.shape[0]}"
        )
    return array


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Return dot(a, b) / (|a| * |b|), or 0.0 when either vector is zero."""
    left = as_vector(a)
    right = as_vector(b, dimensions=left.shape[0])

    norm = float(np.linalg.norm(left)) * float(np.linalg.norm(right))
    if norm == 0.0:
        return 0.0
    similarity = float(np.dot(left, right)) / norm
    # Rounding can push parallel vectors just past 1.
    return max(-1.0, min(1.0, similarity))


def normalize(vector: VectorLike) -> np.ndarray:
    """Return a unit-length copy of ``vector``; zero vectors stay zero."""
    array = as_vector(vector)
    norm = float(np.linalg.norm(array))
    if norm == 0.0:
        return array.copy()
    return array / norm


def similarity_matrix(query: VectorLike, matrix: np.ndarray) -> np.ndarray:
    """Return cosine similarity of ``query`` against every row of ``matrix``."""
    rows = np.asarray(matrix, dtype=np.float64)
    if rows.ndim != 2:
        raise DimensionMismatch(f"Matrix must be two-dimensional; got shape {rows.shape}")
    q = as_vector(query, dimensions=rows.shape[1])

    q_norm = float(np.linalg.norm(q))
    row_norms = np.linalg.norm(rows, axis=1)
    denom = row_norms * q_norm
    dots = rows @ q
    sims = np.zeros(rows.shape[0], dtype=np.float64)
    nonzero = denom > 0.0
    sims[nonzero] = dots[nonzero] / denom[nonzero]
    return np.clip(sims, -1.0, 1.0)

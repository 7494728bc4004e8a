from __future__ import annotations

import numpy as np
import pytest

from traitmatch.index.vector_math import (
    DimensionMismatch,
    as_vector,
    cosine_similarity,
    normalize,
    similarity_matrix,
)


def test_cosine_similarity_is_symmetric() -> None:
    rng = np.random.default_rng(3)
    for _ in range(20):
        a = rng.uniform(0.0, 1.0, size=5)
        b = rng.uniform(0.0, 1.0, size=5)
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_cosine_similarity_of_vector_with_itself_is_one() -> None:
    v = [0.3, 0.7, 0.1, 0.9, 0.4]
    assert cosine_similarity(v, v) == pytest.approx(1.0)


def test_cosine_similarity_ignores_magnitude() -> None:
    assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 3.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


def test_cosine_similarity_zero_vector_is_zero() -> None:
    assert cosine_similarity([0.0, 0.0, 0.0], [0.5, 0.2, 0.1]) == 0.0
    assert cosine_similarity([0.5, 0.2, 0.1], [0.0, 0.0, 0.0]) == 0.0


def test_cosine_similarity_rejects_mismatched_lengths() -> None:
    with pytest.raises(DimensionMismatch):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


def test_dimension_mismatch_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        as_vector([1.0, 2.0], dimensions=5)


def test_as_vector_rejects_matrices() -> None:
    with pytest.raises(DimensionMismatch):
        as_vector([[1.0, 2.0], [3.0, 4.0]])


def test_normalize_returns_unit_length_and_keeps_zero() -> None:
    unit = normalize([3.0, 4.0])
    assert np.linalg.norm(unit) == pytest.approx(1.0)
    assert unit.tolist() == pytest.approx([0.6, 0.8])
    assert normalize([0.0, 0.0]).tolist() == [0.0, 0.0]


def test_similarity_matrix_matches_pairwise() -> None:
    matrix = np.asarray([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0], [0.0, 0.0]])
    sims = similarity_matrix([1.0, 0.0], matrix)
    expected = [cosine_similarity([1.0, 0.0], row) for row in matrix]
    assert sims.tolist() == pytest.approx(expected)

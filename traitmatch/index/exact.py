"""Brute-force k-NN used as ground truth when benchmarking the graph index."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from traitmatch.index.models import Entity, VectorHit
from traitmatch.index.vector_math import VectorLike, similarity_matrix


class ExactOracle:
    """Score a query against every corpus entry.

    O(corpus size) per query; only the tuner calls this, never the
    serving path.
    """

    def scored(
        self,
        query: VectorLike,
        corpus: Sequence[Entity],
        k: int,
        *,
        exclude_id: str | None = None,
    ) -> list[VectorHit]:
        """Return the ``k`` most similar entities with their similarity."""
        if k < 1:
            raise ValueError(f"k must be >= 1; got {k}")

        members = [entity for entity in corpus if entity.identifier != exclude_id]
        if not members:
            return []

        matrix = np.asarray([entity.vector for entity in members], dtype=np.float64)
        sims = similarity_matrix(query, matrix)
        # Stable sort keeps corpus order among equal similarities.
        order = np.argsort(-sims, kind="stable")[:k]
        return [
            VectorHit(identifier=members[int(i)].identifier, score=float(sims[int(i)]))
            for i in order
        ]

    def k_nearest(
        self,
        query: VectorLike,
        corpus: Sequence[Entity],
        k: int,
        *,
        exclude_id: str | None = None,
    ) -> list[str]:
        """Return identifiers of the ``k`` most similar entities, best first."""
        return [hit.identifier for hit in self.scored(query, corpus, k, exclude_id=exclude_id)]

"""Vector store port interface for approximate nearest neighbour matching."""

from __future__ import annotations

from typing import Protocol, Sequence

from traitmatch.index.models import Entity, IndexConfig, VectorHit
from traitmatch.index.vector_math import VectorLike

__all__ = ["Entity", "IndexConfig", "VectorHit", "VectorStorePort"]


class VectorStorePort(Protocol):
    """Port interface for in-memory approximate nearest neighbour search.

    Implementations should provide:
    - Deterministic construction for a fixed insertion order and config
    - Cosine similarity search with a per-call beam width
    - Incremental upsert and no-op-safe removal

    Side effects: none outside process memory.
    """

    @property
    def dimensions(self) -> int:
        ...

    def build(self, entities: Sequence[Entity], config: IndexConfig) -> None:
        """Discard any existing graph and index ``entities`` in order."""
        ...

    def upsert(self, entity: Entity) -> None:
        """Insert ``entity`` or relocate it when its identifier is already indexed."""
        ...

    def remove(self, identifier: str) -> None:
        """Drop ``identifier`` from the index; unknown identifiers are ignored."""
        ...

    def search(self, vector: VectorLike, *, k: int, ef_search: int) -> list[VectorHit]:
        """Return up to ``k`` hits ordered by descending similarity."""
        ...

    def __len__(self) -> int:
        ...

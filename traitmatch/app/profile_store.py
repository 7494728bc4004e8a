"""Authoritative in-memory corpus of profile vectors.

The store owns the entities; attached indexes receive every mutation but
never own the store's data. Merging partial trait updates happens upstream
in the conversation layer, so ``upsert`` here is a plain last-write-wins
replace.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from traitmatch.app.ports.vector_store import Entity, IndexConfig, VectorStorePort
from traitmatch.index.vector_math import VectorLike, as_vector

logger = logging.getLogger(__name__)


class ProfileStore:
    """Insertion-ordered mapping of identifier to :class:`Entity`."""

    def __init__(self, dimensions: int, *, index: VectorStorePort | None = None) -> None:
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1; got {dimensions}")
        self._dimensions = int(dimensions)
        self._entities: dict[str, Entity] = {}
        self._indexes: list[VectorStorePort] = []
        self._lock = threading.Lock()
        if index is not None:
            self.attach(index)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def attach(self, index: VectorStorePort) -> None:
        """Forward future mutations to ``index``."""
        if index.dimensions != self._dimensions:
            raise ValueError(
                f"Index dimension {index.dimensions} does not match store dimension "
                f"{self._dimensions}"
            )
        self._indexes.append(index)

    def detach(self, index: VectorStorePort) -> None:
        if self.is_attached(index):
            self._indexes.remove(index)

    def is_attached(self, index: VectorStorePort) -> bool:
        return any(attached is index for attached in self._indexes)

    def rebuild(self, index: VectorStorePort, config: IndexConfig) -> None:
        """Fully rebuild ``index`` from the current corpus.

        Writes are held off for the duration so no upsert lands between the
        snapshot and the new graph.
        """
        with self._lock:
            index.build(list(self._entities.values()), config)

    def upsert(
        self,
        identifier: str,
        vector: VectorLike,
        confidence: float = 1.0,
    ) -> Entity:
        """Insert or replace ``identifier`` and propagate it to attached indexes."""
        values = as_vector(vector, dimensions=self._dimensions)
        entity = Entity(identifier=identifier, vector=tuple(values), confidence=confidence)
        return self.put(entity)

    def put(self, entity: Entity) -> Entity:
        """Store an already constructed entity (dimension checked)."""
        as_vector(entity.vector, dimensions=self._dimensions)
        with self._lock:
            replaced = entity.identifier in self._entities
            self._entities[entity.identifier] = entity
            for index in self._indexes:
                index.upsert(entity)
        logger.debug("%s profile %s", "Updated" if replaced else "Added", entity.identifier)
        return entity

    def remove(self, identifier: str) -> None:
        """Drop ``identifier`` from the store and attached indexes; unknown ids are ignored."""
        with self._lock:
            if self._entities.pop(identifier, None) is None:
                return
            for index in self._indexes:
                index.remove(identifier)

    def get(self, identifier: str) -> Entity | None:
        return self._entities.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.snapshot())

    def snapshot(self) -> list[Entity]:
        """Return the entities in insertion order, detached from later writes."""
        with self._lock:
            return list(self._entities.values())

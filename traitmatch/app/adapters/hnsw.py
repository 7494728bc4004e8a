"""hnswlib-based vector store adapter implementing VectorStorePort."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from traitmatch.app.ports.vector_store import Entity, IndexConfig, VectorHit, VectorStorePort
from traitmatch.index.graph import DEFAULT_CONFIG, EmptyIndex
from traitmatch.index.vector_math import VectorLike, as_vector

_INITIAL_CAPACITY = 16


class HNSWLibAdapter(VectorStorePort):
    """In-memory HNSW index (hnswlib) for cosine similarity search.

    Identifiers map to integer labels; upserting a known identifier
    overwrites its label in place and removal marks the label deleted.
    """

    def __init__(
        self,
        dimensions: int,
        *,
        space: str = "cosine",
        config: IndexConfig = DEFAULT_CONFIG,
        index_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._dim = int(dimensions)
        self._space = space
        self._config = config
        self._index_factory = index_factory
        self._index: Any | None = None
        self._labels: dict[str, int] = {}
        self._ids: dict[int, str] = {}
        self._next_label = 0
        self._lock = threading.Lock()

    @property
    def dimensions(self) -> int:
        return self._dim

    @property
    def config(self) -> IndexConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._labels

    def _new_index(self, capacity: int, config: IndexConfig) -> Any:
        if self._index_factory is not None:
            index = self._index_factory(space=self._space, dim=self._dim)
        else:
            try:
                import hnswlib
            except Exception as exc:  # pragma: no cover - optional dep
                raise RuntimeError(
                    "hnswlib is required for the hnswlib backend. Install 'hnswlib'."
                ) from exc
            index = hnswlib.Index(space=self._space, dim=self._dim)

        index.init_index(
            max_elements=max(capacity, _INITIAL_CAPACITY),
            ef_construction=config.ef_construction,
            M=config.m,
            random_seed=0,
        )
        index.set_ef(config.ef_search)
        return index

    def build(self, entities: Sequence[Entity], config: IndexConfig) -> None:
        # Later duplicates overwrite earlier ones but keep first-seen order.
        latest: dict[str, Entity] = {}
        for entity in entities:
            as_vector(entity.vector, dimensions=self._dim)
            latest[entity.identifier] = entity

        ids = list(latest)
        with self._lock:
            index = self._new_index(len(ids), config)
            if ids:
                array = np.asarray([latest[i].vector for i in ids], dtype=np.float32)
                index.add_items(array, np.arange(len(ids)))

            self._index = index
            self._config = config
            self._labels = {identifier: label for label, identifier in enumerate(ids)}
            self._ids = dict(enumerate(ids))
            self._next_label = len(ids)

    def upsert(self, entity: Entity) -> None:
        vector = as_vector(entity.vector, dimensions=self._dim).astype(np.float32)
        with self._lock:
            if self._index is None:
                self._index = self._new_index(_INITIAL_CAPACITY, self._config)

            label = self._labels.get(entity.identifier)
            if label is None:
                label = self._next_label
                self._next_label += 1
                if label >= self._index.get_max_elements():
                    self._index.resize_index(max(label + 1, self._index.get_max_elements() * 2))

            self._index.add_items(vector.reshape(1, -1), np.asarray([label]))
            self._labels[entity.identifier] = label
            self._ids[label] = entity.identifier

    def remove(self, identifier: str) -> None:
        with self._lock:
            label = self._labels.pop(identifier, None)
            if label is None or self._index is None:
                return
            self._index.mark_deleted(label)
            del self._ids[label]

    def search(
        self, vector: VectorLike, *, k: int, ef_search: int | None = None
    ) -> list[VectorHit]:
        if k < 1:
            raise ValueError(f"k must be >= 1; got {k}")
        ef = self._config.ef_search if ef_search is None else ef_search
        if ef < 1:
            raise ValueError(f"ef_search must be >= 1; got {ef}")

        q = as_vector(vector, dimensions=self._dim).astype(np.float32).reshape(1, -1)
        with self._lock:
            if self._index is None or not self._labels:
                raise EmptyIndex("Cannot search an index with no nodes; insert profiles first.")
            self._index.set_ef(max(ef, k))
            labels, distances = self._index.knn_query(q, k=min(k, len(self._labels)))

        hits: list[VectorHit] = []
        for label, distance in zip(labels[0], distances[0], strict=True):
            identifier = self._ids.get(int(label))
            if identifier is None:
                continue
            # Cosine distance (0 == identical, 2 == opposite) to similarity
            score = max(-1.0, min(1.0, 1.0 - float(distance)))
            hits.append(VectorHit(identifier=identifier, score=score))
        return hits

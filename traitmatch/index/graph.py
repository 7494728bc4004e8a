"""Navigable small-world graph index for approximate cosine k-NN.

Each inserted node is greedily linked to its ``m`` most similar
already-indexed nodes, found by a beam search of width
``ef_construction`` over the partially built graph. Reverse edges are
added and every touched adjacency list is pruned back to its ``m``
strongest edges (ties broken by identifier). Searches start at the entry
point (the oldest node) and expand best-first.

Writers copy-on-write: ``build``, ``upsert`` and ``remove`` assemble a new
graph under a lock and publish it with one attribute swap, so concurrent
searches traverse a consistent snapshot without locking.

Incremental upserts never re-prune distant nodes that the new node could
have displaced. Graph quality drifts under heavy update load until the
next full ``build``.
"""

from __future__ import annotations

import enum
import heapq
import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from traitmatch.index.models import Entity, IndexConfig, VectorHit
from traitmatch.index.vector_math import VectorLike, as_vector, normalize

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = IndexConfig(m=16, ef_construction=200, ef_search=100)


class EmptyIndex(RuntimeError):
    """Raised when searching an index that holds no nodes."""


class IndexState(str, enum.Enum):
    EMPTY = "empty"
    BUILDING = "building"
    READY = "ready"


@dataclass(slots=True)
class _Graph:
    # Unit-length vectors, so similarity is a plain dot product.
    vectors: dict[str, np.ndarray] = field(default_factory=dict)
    neighbors: dict[str, tuple[str, ...]] = field(default_factory=dict)
    entry_point: str | None = None

    def copy(self) -> _Graph:
        return _Graph(dict(self.vectors), dict(self.neighbors), self.entry_point)


def _ranked(scored: list[tuple[float, str]]) -> list[tuple[float, str]]:
    """Order by similarity descending, then identifier ascending."""
    return sorted(scored, key=lambda item: (-item[0], item[1]))


def _beam_search(graph: _Graph, query: np.ndarray, width: int) -> list[tuple[float, str]]:
    """Best-first traversal keeping the ``width`` most similar nodes seen."""
    entry = graph.entry_point
    if entry is None:
        return []

    entry_sim = float(np.dot(query, graph.vectors[entry]))
    visited = {entry}
    frontier: list[tuple[float, str]] = [(-entry_sim, entry)]
    best: list[tuple[float, str]] = [(entry_sim, entry)]

    while frontier:
        neg_sim, node = heapq.heappop(frontier)
        if len(best) >= width and -neg_sim < best[0][0]:
            break
        for neighbor in graph.neighbors.get(node, ()):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            sim = float(np.dot(query, graph.vectors[neighbor]))
            if len(best) < width or sim > best[0][0]:
                heapq.heappush(frontier, (-sim, neighbor))
                heapq.heappush(best, (sim, neighbor))
                if len(best) > width:
                    heapq.heappop(best)

    return _ranked(best)


def _prune(graph: _Graph, node: str, links: Sequence[str], m: int) -> tuple[str, ...]:
    origin = graph.vectors[node]
    scored = [(float(np.dot(origin, graph.vectors[link])), link) for link in links]
    return tuple(link for _, link in _ranked(scored)[:m])


def _connect(graph: _Graph, identifier: str, vector: np.ndarray, config: IndexConfig) -> None:
    """Link ``identifier`` into ``graph`` in place (graph must be private)."""
    found = _beam_search(graph, vector, config.ef_construction)
    selected = [node for _, node in found[: config.m]]

    graph.vectors[identifier] = vector
    graph.neighbors[identifier] = tuple(selected)
    for node in selected:
        links = graph.neighbors[node] + (identifier,)
        if len(links) > config.m:
            links = _prune(graph, node, links, config.m)
        graph.neighbors[node] = links

    if graph.entry_point is None:
        graph.entry_point = identifier


def _detach(graph: _Graph, identifier: str) -> None:
    """Drop ``identifier`` and every edge pointing at it (graph must be private)."""
    del graph.vectors[identifier]
    del graph.neighbors[identifier]
    for node, links in graph.neighbors.items():
        if identifier in links:
            graph.neighbors[node] = tuple(link for link in links if link != identifier)

    if graph.entry_point == identifier:
        graph.entry_point = next(iter(graph.vectors), None)


class NSWIndex:
    """In-memory navigable small-world index implementing ``VectorStorePort``."""

    def __init__(self, dimensions: int, *, config: IndexConfig = DEFAULT_CONFIG) -> None:
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1; got {dimensions}")
        self._dimensions = int(dimensions)
        self._config = config
        self._graph = _Graph()
        self._state = IndexState.EMPTY
        self._write_lock = threading.Lock()

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def config(self) -> IndexConfig:
        return self._config

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def entry_point(self) -> str | None:
        return self._graph.entry_point

    def __len__(self) -> int:
        return len(self._graph.vectors)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._graph.vectors

    def adjacency(self) -> dict[str, tuple[str, ...]]:
        """Return a copy of every node's neighbour list."""
        return dict(self._graph.neighbors)

    def _prepare(self, entity: Entity) -> np.ndarray:
        unit = normalize(as_vector(entity.vector, dimensions=self._dimensions))
        unit.setflags(write=False)
        return unit

    def build(self, entities: Sequence[Entity], config: IndexConfig | None = None) -> None:
        """Discard the current graph and insert ``entities`` in the given order.

        A repeated identifier relocates the earlier node (last write wins).
        If any entity is rejected the previous graph stays published.
        """
        config = config or self._config
        start = time.perf_counter()
        with self._write_lock:
            previous_state = self._state
            self._state = IndexState.BUILDING
            try:
                graph = _Graph()
                for entity in entities:
                    vector = self._prepare(entity)
                    if entity.identifier in graph.vectors:
                        _detach(graph, entity.identifier)
                    _connect(graph, entity.identifier, vector, config)
            except Exception:
                self._state = previous_state
                raise

            self._graph = graph
            self._config = config
            self._state = IndexState.READY if graph.vectors else IndexState.EMPTY

        logger.debug(
            "Built graph with %d nodes (%s) in %.2f ms",
            len(graph.vectors),
            config.label(),
            (time.perf_counter() - start) * 1000.0,
        )

    def upsert(self, entity: Entity) -> None:
        """Insert or relocate one entity without re-pruning the rest of the graph."""
        vector = self._prepare(entity)
        with self._write_lock:
            graph = self._graph.copy()
            if entity.identifier in graph.vectors:
                _detach(graph, entity.identifier)
            _connect(graph, entity.identifier, vector, self._config)
            self._graph = graph
            self._state = IndexState.READY

    def remove(self, identifier: str) -> None:
        """Drop ``identifier``; unknown identifiers are ignored."""
        with self._write_lock:
            if identifier not in self._graph.vectors:
                return
            graph = self._graph.copy()
            _detach(graph, identifier)
            self._graph = graph
            if not graph.vectors:
                self._state = IndexState.EMPTY

    def search(
        self,
        vector: VectorLike,
        *,
        k: int,
        ef_search: int | None = None,
    ) -> list[VectorHit]:
        """Return up to ``k`` approximate neighbours, most similar first.

        The beam is ``max(ef_search, k)`` wide; wider beams evaluate more
        nodes and find more of the true neighbours.
        """
        if k < 1:
            raise ValueError(f"k must be >= 1; got {k}")
        ef = self._config.ef_search if ef_search is None else ef_search
        if ef < 1:
            raise ValueError(f"ef_search must be >= 1; got {ef}")

        graph = self._graph
        if not graph.vectors:
            raise EmptyIndex("Cannot search an index with no nodes; insert profiles first.")

        query = normalize(as_vector(vector, dimensions=self._dimensions))
        found = _beam_search(graph, query, max(ef, k))
        return [
            VectorHit(identifier=node, score=max(-1.0, min(1.0, sim)))
            for sim, node in found[:k]
        ]

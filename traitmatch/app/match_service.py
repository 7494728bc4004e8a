"""Matching service: the boundary consumed by routing and presentation layers.

Wraps the profile store, the live index, and the tuner. Searches go to the
live index; tuning sweeps run over private builds and, when applied,
swap the live index's configuration with a full rebuild.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from pydantic import BaseModel

from traitmatch.app.ports.vector_store import Entity, IndexConfig, VectorHit, VectorStorePort
from traitmatch.app.profile_store import ProfileStore
from traitmatch.app.seed import dimension_name
from traitmatch.app.tuner_service import (
    DEFAULT_K,
    DEFAULT_SAMPLE_SIZE,
    REFERENCE_CATALOG,
    BenchmarkResult,
    TunerService,
    select_config,
)
from traitmatch.index.vector_math import VectorLike, cosine_similarity
from traitmatch.utils.deterministic import RandomSource

logger = logging.getLogger(__name__)


class UnknownEntity(KeyError):
    """Raised when a referenced profile identifier is not in the store."""


class DimensionContribution(BaseModel):
    dimension: str
    contribution: float


class MatchExplanation(BaseModel):
    """Why two profiles match: overall similarity and strongest shared dimensions."""

    first_id: str
    second_id: str
    similarity: float
    top_contributors: list[DimensionContribution]


class TuningReport(BaseModel):
    """Outcome of a sweep plus the configuration chosen for the budget."""

    latency_budget_ms: float
    total_configs_tested: int
    configs: list[BenchmarkResult]
    selected_config: BenchmarkResult
    applied: bool
    explanation: str


class MatchService:
    """Profile upserts, neighbour queries, and self-tuning of the live index."""

    def __init__(
        self,
        store: ProfileStore,
        index: VectorStorePort,
        tuner: TunerService,
        *,
        config: IndexConfig,
        default_k: int = 10,
    ) -> None:
        """Initialize matching service.

        Args:
            store: Authoritative corpus; ``index`` is attached to it
            index: Live index answering searches
            tuner: Benchmarks configurations over private builds
            config: Configuration the live index is built with
            default_k: Neighbours returned when the caller gives no ``k``
        """
        self.store = store
        self.index = index
        self.tuner = tuner
        self.default_k = default_k
        self._config = config
        self._rebuild_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        if not store.is_attached(index):
            store.attach(index)

    @property
    def active_config(self) -> IndexConfig:
        return self._config

    # Corpus mutations -----------------------------------------------------

    def upsert(self, identifier: str, vector: VectorLike, confidence: float = 1.0) -> Entity:
        """Insert or replace a profile; the live index is updated incrementally."""
        return self.store.upsert(identifier, vector, confidence)

    def remove(self, identifier: str) -> None:
        self.store.remove(identifier)

    def rebuild(self, config: IndexConfig | None = None) -> None:
        """Rebuild the live index from the store, optionally with a new config.

        Incremental upserts let graph quality drift; a rebuild restores it.
        """
        config = config or self._config
        with self._rebuild_lock:
            self.store.rebuild(self.index, config)
            self._config = config
        logger.info("Rebuilt live index with %d profiles (%s)", len(self.index), config.label())

    # Queries ----------------------------------------------------------------

    def search(
        self,
        vector: VectorLike,
        *,
        k: int | None = None,
        ef_search: int | None = None,
    ) -> list[VectorHit]:
        """Return up to ``k`` approximate neighbours of ``vector``, best first."""
        return self.index.search(
            vector,
            k=self.default_k if k is None else k,
            ef_search=self._config.ef_search if ef_search is None else ef_search,
        )

    def similar_to(
        self,
        identifier: str,
        *,
        k: int | None = None,
        ef_search: int | None = None,
    ) -> list[VectorHit]:
        """Return neighbours of an existing profile, excluding the profile itself."""
        entity = self._require(identifier)
        limit = self.default_k if k is None else k
        hits = self.search(entity.vector, k=limit + 1, ef_search=ef_search)
        return [hit for hit in hits if hit.identifier != identifier][:limit]

    def explain_match(self, first_id: str, second_id: str, *, top: int = 3) -> MatchExplanation:
        """Overall similarity and the dimensions contributing most to it.

        A dimension contributes ``(1 - |a - b|) * a * b``: high when both
        profiles score high and close together.
        """
        first = self._require(first_id)
        second = self._require(second_id)

        contributions = [
            DimensionContribution(
                dimension=dimension_name(position),
                contribution=(1.0 - abs(a - b)) * a * b,
            )
            for position, (a, b) in enumerate(zip(first.vector, second.vector, strict=True))
        ]
        contributions.sort(key=lambda item: item.contribution, reverse=True)

        return MatchExplanation(
            first_id=first_id,
            second_id=second_id,
            similarity=cosine_similarity(first.vector, second.vector),
            top_contributors=contributions[:top],
        )

    def _require(self, identifier: str) -> Entity:
        entity = self.store.get(identifier)
        if entity is None:
            raise UnknownEntity(identifier)
        return entity

    # Tuning -----------------------------------------------------------------

    def run_benchmark(
        self,
        catalog: Sequence[IndexConfig] = REFERENCE_CATALOG,
        *,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        k: int = DEFAULT_K,
        rng: RandomSource = None,
    ) -> list[BenchmarkResult]:
        return self.tuner.run_benchmark(catalog, sample_size=sample_size, k=k, rng=rng)

    def select_config(
        self, results: Sequence[BenchmarkResult], latency_budget_ms: float
    ) -> BenchmarkResult:
        return select_config(results, latency_budget_ms)

    def tune(
        self,
        latency_budget_ms: float,
        *,
        catalog: Sequence[IndexConfig] = REFERENCE_CATALOG,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        k: int = DEFAULT_K,
        rng: RandomSource = None,
        apply: bool = True,
    ) -> TuningReport:
        """Benchmark ``catalog``, pick a config for the budget, and optionally adopt it."""
        results = self.run_benchmark(catalog, sample_size=sample_size, k=k, rng=rng)
        selected = select_config(results, latency_budget_ms)

        if apply:
            if selected.config.build_key != self._config.build_key:
                self.rebuild(selected.config)
            else:
                self._config = selected.config
            logger.info("Live index now uses %s", selected.config.label())

        if selected.p95_latency_ms <= latency_budget_ms:
            explanation = (
                f"Selected config with highest recall@{k} ({selected.recall * 100:.1f}%) "
                f"under {latency_budget_ms:g}ms latency budget"
            )
        else:
            explanation = (
                f"No config met the {latency_budget_ms:g}ms latency budget; selected the "
                f"fastest (p95 {selected.p95_latency_ms:.2f}ms, recall@{k} "
                f"{selected.recall * 100:.1f}%)"
            )

        return TuningReport(
            latency_budget_ms=latency_budget_ms,
            total_configs_tested=len(results),
            configs=results,
            selected_config=selected,
            applied=apply,
            explanation=explanation,
        )

    def tune_async(self, latency_budget_ms: float, **kwargs) -> Future[TuningReport]:
        """Run :meth:`tune` on the tuner's worker thread."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="traitmatch-tuner"
            )
        return self._executor.submit(self.tune, latency_budget_ms, **kwargs)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

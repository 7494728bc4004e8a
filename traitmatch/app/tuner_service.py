"""Index parameter tuner.

Sweeps a catalog of index configurations over a private build of the
corpus, measures recall@k against brute-force ground truth together with
query latency, and picks the most accurate configuration that fits a p95
latency budget.

Benchmarking is read-only with respect to the profile store: every build
happens on a snapshot, so live searches are never blocked by a sweep.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Sequence

from pydantic import BaseModel, Field, field_serializer

from traitmatch.app.ports.vector_store import Entity, IndexConfig, VectorStorePort
from traitmatch.app.profile_store import ProfileStore
from traitmatch.index.exact import ExactOracle
from traitmatch.utils.deterministic import RandomSource, make_rng, sample_indices

logger = logging.getLogger(__name__)

IndexFactory = Callable[[int], VectorStorePort]

# Ordered from cheap/inaccurate to expensive/accurate.
REFERENCE_CATALOG: tuple[IndexConfig, ...] = (
    IndexConfig(m=8, ef_construction=100, ef_search=20),
    IndexConfig(m=8, ef_construction=100, ef_search=50),
    IndexConfig(m=16, ef_construction=100, ef_search=50),
    IndexConfig(m=16, ef_construction=200, ef_search=100),
    IndexConfig(m=32, ef_construction=200, ef_search=100),
    IndexConfig(m=32, ef_construction=200, ef_search=200),
    IndexConfig(m=32, ef_construction=400, ef_search=200),
    IndexConfig(m=48, ef_construction=400, ef_search=300),
)

DEFAULT_SAMPLE_SIZE = 20
DEFAULT_K = 10


class BenchmarkUnavailable(RuntimeError):
    """Raised when a sweep is requested on an empty corpus."""


class BenchmarkResult(BaseModel):
    """Measured quality and latency of one index configuration."""

    m: int
    ef_construction: int
    ef_search: int
    recall: float = Field(..., ge=0.0, le=1.0, description="Mean recall@k")
    avg_latency_ms: float
    p95_latency_ms: float
    queries_per_second: float
    sample_size: int
    k: int
    failed_queries: int = 0

    @field_serializer("avg_latency_ms", "p95_latency_ms", when_used="json")
    def _finite_or_none(self, value: float) -> float | None:
        return value if math.isfinite(value) else None

    @property
    def config(self) -> IndexConfig:
        return IndexConfig(m=self.m, ef_construction=self.ef_construction, ef_search=self.ef_search)


def p95(latencies: Sequence[float]) -> float:
    """Return the 95th-percentile value: ``sorted[floor(0.95 * n)]``, clamped to the last."""
    if not latencies:
        raise ValueError("Cannot compute a percentile of no samples")
    ordered = sorted(latencies)
    index = min(int(math.floor(len(ordered) * 0.95)), len(ordered) - 1)
    return ordered[index]


def recall_at_k(approx: Sequence[str], truth: Sequence[str], k: int) -> float:
    """Fraction of the true neighbours found, clamped to [0, 1].

    The denominator is ``min(k, len(truth))`` so tiny corpora are not
    penalised; empty ground truth counts as perfect recall.
    """
    denominator = min(k, len(truth))
    if denominator == 0:
        return 1.0
    hits = len(set(approx) & set(truth[:denominator]))
    return max(0.0, min(1.0, hits / denominator))


def select_config(results: Sequence[BenchmarkResult], latency_budget_ms: float) -> BenchmarkResult:
    """Pick the highest-recall result whose p95 latency fits the budget.

    Ties go to the first result in catalog order. When nothing fits, the
    result with the lowest p95 latency is returned instead of failing.
    """
    if not results:
        raise ValueError("No benchmark results to select from")

    eligible = [r for r in results if r.p95_latency_ms <= latency_budget_ms]
    if not eligible:
        fastest = results[0]
        for result in results[1:]:
            if result.p95_latency_ms < fastest.p95_latency_ms:
                fastest = result
        logger.warning(
            "No configuration meets the %.2f ms budget; falling back to fastest (p95 %.2f ms)",
            latency_budget_ms,
            fastest.p95_latency_ms,
        )
        return fastest

    best = eligible[0]
    for result in eligible[1:]:
        if result.recall > best.recall:
            best = result
    return best


get_best_config = select_config


class TunerService:
    """Benchmark index configurations against exact ground truth."""

    def __init__(
        self,
        store: ProfileStore,
        index_factory: IndexFactory,
        *,
        oracle: ExactOracle | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize tuner.

        Args:
            store: Corpus to sample queries from and index
            index_factory: Builds a fresh, private index for a dimension
            oracle: Ground-truth search (defaults to brute force)
            clock: Monotonic seconds source used to time searches
        """
        self.store = store
        self.index_factory = index_factory
        self.oracle = oracle or ExactOracle()
        self.clock = clock

    def run_benchmark(
        self,
        catalog: Sequence[IndexConfig] = REFERENCE_CATALOG,
        *,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        k: int = DEFAULT_K,
        rng: RandomSource = None,
    ) -> list[BenchmarkResult]:
        """Measure every configuration in ``catalog``; one result each, in order.

        The same sampled queries are used for every configuration, and a
        graph is built once per (m, ef_construction) pair.

        Raises:
            BenchmarkUnavailable: The corpus is empty
        """
        if sample_size < 1:
            raise ValueError(f"sample_size must be >= 1; got {sample_size}")
        if k < 1:
            raise ValueError(f"k must be >= 1; got {k}")

        corpus = self.store.snapshot()
        if not corpus:
            raise BenchmarkUnavailable("Cannot benchmark an empty corpus; add profiles first.")

        generator = make_rng(rng)
        queries = [corpus[i] for i in sample_indices(generator, len(corpus), sample_size)]
        truths = {
            query.identifier: self.oracle.k_nearest(
                query.vector, corpus, k, exclude_id=query.identifier
            )
            for query in queries
        }

        logger.info(
            "Benchmarking %d configs over %d profiles (%d queries, k=%d)",
            len(catalog),
            len(corpus),
            len(queries),
            k,
        )

        builds: dict[tuple[int, int], VectorStorePort | None] = {}
        results: list[BenchmarkResult] = []
        for config in catalog:
            if config.build_key not in builds:
                builds[config.build_key] = self._build(corpus, config)
            index = builds[config.build_key]
            result = self._measure(index, config, queries, truths, k)
            logger.debug(
                "%s recall=%.3f avg=%.3fms p95=%.3fms",
                config.label(),
                result.recall,
                result.avg_latency_ms,
                result.p95_latency_ms,
            )
            results.append(result)

        logger.info("Benchmark complete. Tested %d configs.", len(results))
        return results

    def _build(self, corpus: list[Entity], config: IndexConfig) -> VectorStorePort | None:
        try:
            index = self.index_factory(self.store.dimensions)
            index.build(corpus, config)
        except Exception:  # noqa: BLE001 - one bad build must not abort the sweep
            logger.warning("Index build failed for %s", config.label(), exc_info=True)
            return None
        return index

    def _measure(
        self,
        index: VectorStorePort | None,
        config: IndexConfig,
        queries: list[Entity],
        truths: dict[str, list[str]],
        k: int,
    ) -> BenchmarkResult:
        latencies: list[float] = []
        total_recall = 0.0
        failures = 0

        for query in queries:
            if index is None:
                latencies.append(math.inf)
                failures += 1
                continue
            try:
                start = self.clock()
                # One extra hit so the query's own node can be discarded.
                hits = index.search(query.vector, k=k + 1, ef_search=config.ef_search)
                elapsed_ms = (self.clock() - start) * 1000.0
            except Exception:  # noqa: BLE001 - recorded as worst case
                logger.warning(
                    "Search failed for %s with %s", query.identifier, config.label(), exc_info=True
                )
                latencies.append(math.inf)
                failures += 1
                continue

            approx = [hit.identifier for hit in hits if hit.identifier != query.identifier][:k]
            latencies.append(elapsed_ms)
            total_recall += recall_at_k(approx, truths[query.identifier], k)

        # The mean never exceeds the max; clamp away float rounding.
        avg_latency = min(math.fsum(latencies) / len(latencies), max(latencies))
        # Any failed query ranks the whole config as worst case.
        p95_latency = math.inf if failures else p95(latencies)
        if math.isfinite(avg_latency) and avg_latency > 0.0:
            qps = 1000.0 / avg_latency
        else:
            qps = 0.0

        return BenchmarkResult(
            m=config.m,
            ef_construction=config.ef_construction,
            ef_search=config.ef_search,
            recall=total_recall / len(queries),
            avg_latency_ms=avg_latency,
            p95_latency_ms=p95_latency,
            queries_per_second=qps,
            sample_size=len(queries),
            k=k,
            failed_queries=failures,
        )

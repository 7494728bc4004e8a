"""Application bootstrap wiring the store, index backend, and services."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from traitmatch.app import MatchService, ProfileStore, TunerService
from traitmatch.app.adapters import HNSWLibAdapter
from traitmatch.app.ports import Entity, IndexConfig, VectorStorePort
from traitmatch.app.seed import generate_seed_entities
from traitmatch.app.tuner_service import IndexFactory
from traitmatch.config import Settings, get_settings
from traitmatch.index import NSWIndex

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    store: ProfileStore
    index: VectorStorePort
    index_factory: IndexFactory
    tuner: TunerService
    match_service: MatchService


def make_index_factory(settings: Settings) -> IndexFactory:
    """Return a factory producing fresh indexes of the configured backend."""
    config = settings.index_config()

    if settings.index_backend == "hnswlib":

        def hnswlib_factory(dimensions: int) -> VectorStorePort:
            return HNSWLibAdapter(dimensions, config=config)

        return hnswlib_factory

    def nsw_factory(dimensions: int) -> VectorStorePort:
        return NSWIndex(dimensions, config=config)

    return nsw_factory


def bootstrap_application(
    settings: Settings | None = None,
    *,
    entities: Sequence[Entity] | None = None,
    index_factory: IndexFactory | None = None,
) -> ApplicationContainer:
    """Wire an application around an in-memory corpus.

    Args:
        settings: Configuration (defaults to the global settings)
        entities: Initial corpus; generated demo profiles when omitted
        index_factory: Override for the configured index backend
    """
    active_settings = settings or get_settings()
    config: IndexConfig = active_settings.index_config()
    factory = index_factory or make_index_factory(active_settings)

    if entities is None:
        entities = generate_seed_entities(
            active_settings.seed_user_count,
            dimensions=active_settings.dimensions,
            seed=active_settings.random_seed,
        )

    store = ProfileStore(active_settings.dimensions)
    for entity in entities:
        store.put(entity)

    index = factory(active_settings.dimensions)
    store.attach(index)
    store.rebuild(index, config)
    logger.info(
        "Loaded %d profiles into %s index (%s)",
        len(store),
        active_settings.index_backend,
        config.label(),
    )

    tuner = TunerService(store, factory)
    match_service = MatchService(
        store,
        index,
        tuner,
        config=config,
        default_k=active_settings.default_k,
    )

    return ApplicationContainer(
        settings=active_settings,
        store=store,
        index=index,
        index_factory=factory,
        tuner=tuner,
        match_service=match_service,
    )

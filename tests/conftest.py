"""Pytest configuration and fixtures."""

from collections.abc import Generator

import pytest

from traitmatch.app.seed import generate_seed_entities
from traitmatch.config import Settings
from traitmatch.index import Entity, IndexConfig

SEED = 7


@pytest.fixture
def seed_corpus() -> list[Entity]:
    """One hundred generated 5-D profiles (deterministic)."""
    return generate_seed_entities(100, seed=SEED)


@pytest.fixture
def small_corpus() -> list[Entity]:
    """Hand-written corpus with obvious nearest neighbours."""
    return [
        Entity("a", (1.0, 0.0, 0.0), 0.9),
        Entity("b", (0.9, 0.1, 0.0), 0.8),
        Entity("c", (0.0, 1.0, 0.0), 0.7),
        Entity("d", (0.0, 0.9, 0.2), 0.6),
        Entity("e", (0.0, 0.0, 1.0), 0.5),
    ]


@pytest.fixture
def accurate_config() -> IndexConfig:
    return IndexConfig(m=16, ef_construction=200, ef_search=200)


@pytest.fixture
def override_settings() -> Generator[Settings, None, None]:
    """Provide isolated TraitMatch settings scoped to tests."""

    import traitmatch.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    settings = config_module.Settings(
        random_seed=SEED,
        seed_user_count=100,
        index_backend="nsw",
    )

    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings

import pytest
from pydantic import ValidationError

from traitmatch.config import Settings, get_settings, set_settings
from traitmatch.index import IndexConfig


def test_defaults(monkeypatch):
    monkeypatch.delenv("TRAITMATCH_INDEX_M", raising=False)
    settings = Settings(_env_file=None)

    assert settings.dimensions == 5
    assert settings.index_backend == "nsw"
    assert settings.index_config() == IndexConfig(m=16, ef_construction=200, ef_search=100)
    assert settings.latency_budget_ms == 50.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TRAITMATCH_INDEX_M", "32")
    monkeypatch.setenv("TRAITMATCH_INDEX_BACKEND", "hnswlib")
    monkeypatch.setenv("TRAITMATCH_RANDOM_SEED", "42")

    settings = Settings(_env_file=None)

    assert settings.index_m == 32
    assert settings.index_backend == "hnswlib"
    assert settings.random_seed == 42


def test_invalid_backend_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, index_backend="faiss")


def test_index_config_requires_beam_at_least_degree():
    settings = Settings(_env_file=None, index_m=64, index_ef_construction=32)
    with pytest.raises(ValidationError):
        settings.index_config()


def test_global_settings_can_be_replaced(override_settings):
    assert get_settings() is override_settings

    replacement = Settings(_env_file=None, seed_user_count=3)
    set_settings(replacement)
    assert get_settings() is replacement

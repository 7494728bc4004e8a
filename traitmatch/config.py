"""Configuration management with Pydantic settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from traitmatch.index.models import IndexConfig

IndexBackend = Literal["nsw", "hnswlib"]


class Settings(BaseSettings):
    """TraitMatch configuration settings.

    Precedence: CLI flag > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAITMATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Corpus
    dimensions: int = Field(
        default=5,
        ge=1,
        description="Vector dimensionality (Big-5 traits, plus any interest weights)",
    )

    seed_user_count: int = Field(
        default=100,
        ge=0,
        description="Number of generated demo profiles loaded at startup",
    )

    random_seed: int | None = Field(
        default=None,
        description="Seed for demo corpus generation and benchmark query sampling",
    )

    # Live index
    index_backend: IndexBackend = Field(
        default="nsw",
        description="ANN backend: built-in navigable small-world graph or hnswlib",
    )

    index_m: int = Field(
        default=16,
        ge=1,
        description="Maximum connections per graph node",
    )

    index_ef_construction: int = Field(
        default=200,
        ge=1,
        description="Beam width used while inserting nodes",
    )

    index_ef_search: int = Field(
        default=100,
        ge=1,
        description="Beam width used while answering queries",
    )

    default_k: int = Field(
        default=10,
        ge=1,
        description="Neighbours returned when the caller does not ask for a count",
    )

    # Tuner
    benchmark_sample_size: int = Field(
        default=20,
        ge=1,
        description="Corpus members sampled as benchmark queries",
    )

    benchmark_k: int = Field(
        default=10,
        ge=1,
        description="k used for recall@k while benchmarking",
    )

    latency_budget_ms: float = Field(
        default=50.0,
        ge=0.0,
        description="p95 latency budget used when selecting a configuration",
    )

    log_level: str = Field(
        default="WARNING",
        description="Root log level configured by the CLI",
    )

    def index_config(self) -> IndexConfig:
        """Return the live index parameters as a validated ``IndexConfig``."""
        return IndexConfig(
            m=self.index_m,
            ef_construction=self.index_ef_construction,
            ef_search=self.index_ef_search,
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings

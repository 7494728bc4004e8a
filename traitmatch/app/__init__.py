"""Application layer for TraitMatch.

Services orchestrate the profile store, the live index, and the tuner.
Index implementations are reached only through the vector store port.
"""

__all__ = [
    "BenchmarkResult",
    "BenchmarkUnavailable",
    "MatchService",
    "ProfileStore",
    "TunerService",
    "TuningReport",
    "UnknownEntity",
]

from traitmatch.app.match_service import MatchService, TuningReport, UnknownEntity
from traitmatch.app.profile_store import ProfileStore
from traitmatch.app.tuner_service import BenchmarkResult, BenchmarkUnavailable, TunerService

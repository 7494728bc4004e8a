"""TraitMatch - personality/interest vector matching with a self-tuning ANN index.

Approximate nearest-neighbour retrieval over profile vectors, with an
online tuner that picks the most accurate index configuration under a
latency budget.
"""

__version__ = "0.1.0"
__author__ = "TraitMatch Contributors"

from traitmatch.config import Settings, get_settings
from traitmatch.index import DimensionMismatch, EmptyIndex
from traitmatch.app import BenchmarkUnavailable, UnknownEntity

__all__ = [
    "BenchmarkUnavailable",
    "DimensionMismatch",
    "EmptyIndex",
    "Settings",
    "UnknownEntity",
    "get_settings",
    "__version__",
]

"""Vector math, graph index, and exact ground-truth search."""

from traitmatch.index.exact import ExactOracle
from traitmatch.index.graph import DEFAULT_CONFIG, EmptyIndex, IndexState, NSWIndex
from traitmatch.index.models import Entity, IndexConfig, VectorHit
from traitmatch.index.vector_math import (
    DimensionMismatch,
    as_vector,
    cosine_similarity,
    normalize,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DimensionMismatch",
    "EmptyIndex",
    "Entity",
    "ExactOracle",
    "IndexConfig",
    "IndexState",
    "NSWIndex",
    "VectorHit",
    "as_vector",
    "cosine_similarity",
    "normalize",
]

"""Value types shared by the graph index, the exact oracle, and the tuner."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator


@dataclass(frozen=True, slots=True)
class Entity:
    """One profile: identifier, trait/interest vector, and confidence in [0, 1]."""

    identifier: str
    vector: tuple[float, ...]
    confidence: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "vector", tuple(float(value) for value in self.vector))
        confidence = float(self.confidence)
        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1]; got {confidence}")
        object.__setattr__(self, "confidence", confidence)

    @property
    def dimensions(self) -> int:
        return len(self.vector)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.vector, dtype=np.float64)


class IndexConfig(BaseModel):
    """Graph index parameters: max connections, build and search beam widths."""

    model_config = ConfigDict(frozen=True)

    m: int = Field(..., ge=1, description="Maximum connections kept per node")
    ef_construction: int = Field(..., ge=1, description="Beam width while building")
    ef_search: int = Field(..., ge=1, description="Beam width while querying")

    @model_validator(mode="after")
    def _check_beam_covers_degree(self) -> IndexConfig:
        if self.ef_construction < self.m:
            raise ValueError(
                f"ef_construction ({self.ef_construction}) must be >= m ({self.m})"
            )
        return self

    @property
    def build_key(self) -> tuple[int, int]:
        """Parameters that shape the graph; ``ef_search`` only affects queries."""
        return (self.m, self.ef_construction)

    def label(self) -> str:
        return f"M={self.m} efC={self.ef_construction} efS={self.ef_search}"


@dataclass(slots=True)
class VectorHit:
    """Single neighbour search result."""

    identifier: str
    score: float

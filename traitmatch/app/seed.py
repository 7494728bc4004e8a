"""Demo corpus of generated profiles.

The first five dimensions are Big-5 personality traits drawn from
skewed-but-plausible ranges; any further dimensions are interest weights
in [0, 1].
"""

from __future__ import annotations

from traitmatch.index.models import Entity
from traitmatch.utils.deterministic import RandomSource, make_rng

TRAIT_NAMES: tuple[str, ...] = (
    "openness",
    "conscientiousness",
    "extraversion",
    "agreeableness",
    "neuroticism",
)

TRAIT_RANGES: dict[str, tuple[float, float]] = {
    "openness": (0.2, 0.95),
    "conscientiousness": (0.2, 0.95),
    "extraversion": (0.1, 0.9),
    "agreeableness": (0.3, 0.95),
    "neuroticism": (0.1, 0.8),
}

CONFIDENCE_RANGE = (0.5, 1.0)


def dimension_name(position: int) -> str:
    """Human-readable name of vector dimension ``position``."""
    if position < len(TRAIT_NAMES):
        return TRAIT_NAMES[position]
    return f"dim_{position}"


def seed_identifier(index: int) -> str:
    return f"user_{index:03d}"


def generate_seed_entities(
    count: int,
    *,
    dimensions: int = len(TRAIT_NAMES),
    seed: RandomSource = None,
) -> list[Entity]:
    """Generate ``count`` profiles; identical output for an identical seed."""
    if count < 0:
        raise ValueError(f"count must be >= 0; got {count}")
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1; got {dimensions}")

    rng = make_rng(seed)
    entities: list[Entity] = []
    for index in range(count):
        vector: list[float] = []
        for position in range(dimensions):
            low, high = TRAIT_RANGES.get(dimension_name(position), (0.0, 1.0))
            vector.append(float(rng.uniform(low, high)))
        confidence = float(rng.uniform(*CONFIDENCE_RANGE))
        entities.append(
            Entity(identifier=seed_identifier(index), vector=tuple(vector), confidence=confidence)
        )
    return entities

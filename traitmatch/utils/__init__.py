"""Utility modules for common operations."""

from traitmatch.utils.cli_output import json_response
from traitmatch.utils.deterministic import make_rng, sample_indices, verify_determinism

__all__ = [
    "json_response",
    "make_rng",
    "sample_indices",
    "verify_determinism",
]

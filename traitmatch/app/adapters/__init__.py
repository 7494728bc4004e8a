"""Concrete adapters wiring application ports to optional backends."""

from __future__ import annotations

from .hnsw import HNSWLibAdapter

__all__ = ["HNSWLibAdapter"]

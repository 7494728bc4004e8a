"""Port interfaces for the TraitMatch application layer.

Services depend on these protocols, never on concrete index
implementations.
"""

__all__ = [
    "Entity",
    "IndexConfig",
    "VectorHit",
    "VectorStorePort",
]

from traitmatch.app.ports.vector_store import Entity, IndexConfig, VectorHit, VectorStorePort

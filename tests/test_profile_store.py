from __future__ import annotations

import pytest

from traitmatch.app.profile_store import ProfileStore
from traitmatch.index import DimensionMismatch, Entity, IndexConfig, NSWIndex


class RecordingIndex:
    """Minimal VectorStorePort double that records mutations."""

    def __init__(self, dimensions: int) -> None:
        self.dimensions = dimensions
        self.upserts: list[str] = []
        self.removals: list[str] = []
        self.builds: list[list[str]] = []

    def build(self, entities, config) -> None:  # noqa: ARG002
        self.builds.append([entity.identifier for entity in entities])

    def upsert(self, entity: Entity) -> None:
        self.upserts.append(entity.identifier)

    def remove(self, identifier: str) -> None:
        self.removals.append(identifier)

    def search(self, vector, *, k, ef_search):  # pragma: no cover - not used
        return []

    def __len__(self) -> int:  # pragma: no cover - not used
        return 0


def test_upsert_inserts_then_replaces() -> None:
    store = ProfileStore(3)
    store.upsert("u1", [0.1, 0.2, 0.3], 0.4)
    store.upsert("u2", [0.3, 0.2, 0.1], 0.5)
    replaced = store.upsert("u1", [0.9, 0.9, 0.9], 0.8)

    assert len(store) == 2
    assert replaced.vector == (0.9, 0.9, 0.9)
    assert store.get("u1") == replaced
    # Replacement keeps the original insertion position.
    assert [entity.identifier for entity in store] == ["u1", "u2"]


def test_upsert_rejects_wrong_dimension() -> None:
    store = ProfileStore(5)
    with pytest.raises(DimensionMismatch):
        store.upsert("u1", [0.1, 0.2])
    with pytest.raises(DimensionMismatch):
        store.put(Entity("u2", (0.1, 0.2, 0.3, 0.4, 0.5, 0.6)))
    assert len(store) == 0


@pytest.mark.parametrize("confidence", [-0.1, 1.5])
def test_upsert_rejects_confidence_out_of_range(confidence: float) -> None:
    store = ProfileStore(2)
    with pytest.raises(ValueError):
        store.upsert("u1", [0.1, 0.2], confidence)


def test_remove_unknown_identifier_is_noop() -> None:
    index = RecordingIndex(2)
    store = ProfileStore(2, index=index)
    store.remove("ghost")
    assert index.removals == []

    store.upsert("u1", [0.1, 0.2])
    store.remove("u1")
    assert "u1" not in store
    assert index.removals == ["u1"]


def test_mutations_flow_into_attached_index() -> None:
    index = RecordingIndex(2)
    store = ProfileStore(2, index=index)

    store.upsert("u1", [0.1, 0.2])
    store.upsert("u1", [0.3, 0.2])

    assert index.upserts == ["u1", "u1"]
    assert store.is_attached(index)

    store.detach(index)
    store.upsert("u2", [0.5, 0.5])
    assert index.upserts == ["u1", "u1"]


def test_attach_rejects_dimension_mismatch() -> None:
    with pytest.raises(ValueError):
        ProfileStore(5, index=RecordingIndex(3))


def test_rebuild_uses_current_corpus(small_corpus: list[Entity]) -> None:
    store = ProfileStore(3)
    for entity in small_corpus:
        store.put(entity)
    index = NSWIndex(3)

    store.rebuild(index, IndexConfig(m=2, ef_construction=4, ef_search=4))

    assert len(index) == len(small_corpus)


def test_snapshot_is_isolated_from_later_writes() -> None:
    store = ProfileStore(2)
    store.upsert("u1", [0.1, 0.2])
    snapshot = store.snapshot()
    store.upsert("u2", [0.2, 0.1])

    assert [entity.identifier for entity in snapshot] == ["u1"]

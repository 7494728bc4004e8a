from __future__ import annotations

import pytest

from traitmatch.index import Entity, ExactOracle, cosine_similarity


def test_k_nearest_excludes_query_and_sorts_descending(seed_corpus: list[Entity]) -> None:
    oracle = ExactOracle()
    query = seed_corpus[7]

    ids = oracle.k_nearest(query.vector, seed_corpus, 10, exclude_id=query.identifier)

    assert len(ids) == 10
    assert query.identifier not in ids

    by_id = {entity.identifier: entity for entity in seed_corpus}
    sims = [cosine_similarity(query.vector, by_id[i].vector) for i in ids]
    assert sims == sorted(sims, reverse=True)

    expected = sorted(
        (e for e in seed_corpus if e.identifier != query.identifier),
        key=lambda e: cosine_similarity(query.vector, e.vector),
        reverse=True,
    )[:10]
    assert set(ids) == {e.identifier for e in expected}


def test_k_larger_than_corpus_returns_everything(small_corpus: list[Entity]) -> None:
    hits = ExactOracle().scored((1.0, 0.0, 0.0), small_corpus, 50)

    assert [hit.identifier for hit in hits][:2] == ["a", "b"]
    assert len(hits) == len(small_corpus)
    assert hits[0].score == pytest.approx(1.0)


def test_only_member_excluded_yields_nothing() -> None:
    corpus = [Entity("solo", (0.5, 0.5))]
    assert ExactOracle().k_nearest((0.5, 0.5), corpus, 3, exclude_id="solo") == []


def test_invalid_k_rejected(small_corpus: list[Entity]) -> None:
    with pytest.raises(ValueError):
        ExactOracle().k_nearest((1.0, 0.0, 0.0), small_corpus, 0)

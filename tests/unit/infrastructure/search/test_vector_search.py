"""Tests for cosine vector search over stored embeddings."""

from datetime import datetime, timedelta, timezone

import pytest

from docsearch.domain.entities import EmbeddingRecord, SearchableDocument
from docsearch.infrastructure.search.vector_search import VectorSearchService, clamp_unit

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def doc(document_id, days=0):
    return SearchableDocument(id=document_id, title=document_id, created_at=T0 + timedelta(days=days))


def record(document_id, vector, model="m1"):
    return EmbeddingRecord(document_id=document_id, vector=vector, model_version=model)


@pytest.fixture
def service():
    return VectorSearchService()


class TestVectorSearch:

    def test_ranks_by_cosine_similarity(self, service):
        documents = [doc("far"), doc("near"), doc("exact")]
        embeddings = {
            "far": record("far", [0.0, 1.0]),
            "near": record("near", [1.0, 1.0]),
            "exact": record("exact", [2.0, 0.0]),
        }

        results = service.search([1.0, 0.0], documents, embeddings, threshold=0.5)

        assert [r.document_id for r in results] == ["exact", "near"]
        assert results[0].vector_score == pytest.approx(1.0)
        assert results[1].vector_score == pytest.approx(0.7071, abs=1e-4)
        assert results[0].sources == ("vector",)

    def test_negative_similarity_clamped_to_zero(self, service):
        results = service.search([1.0, 0.0], [doc("opposite")], {"opposite": record("opposite", [-1.0, 0.0])}, 0.0)

        assert results[0].vector_score == 0.0

    def test_ties_prefer_newer_documents_then_id(self, service):
        documents = [doc("b", days=1), doc("a", days=1), doc("old", days=0), doc("new", days=5)]
        embeddings = {d.id: record(d.id, [1.0, 0.0]) for d in documents}

        results = service.search([1.0, 0.0], documents, embeddings, threshold=0.0)

        assert [r.document_id for r in results] == ["new", "a", "b", "old"]

    def test_skips_missing_mismatched_and_stale_vectors(self, service):
        documents = [doc("ok"), doc("missing"), doc("short"), doc("stale")]
        embeddings = {
            "ok": record("ok", [1.0, 0.0]),
            "short": record("short", [1.0]),
            "stale": record("stale", [1.0, 0.0], model="m0"),
        }

        results = service.search([1.0, 0.0], documents, embeddings, threshold=0.0, model_version="m1")

        assert [r.document_id for r in results] == ["ok"]
        assert service.get_stats()["skipped_vectors"] == 3

    def test_empty_query_vector(self, service):
        assert service.search([], [doc("a")], {"a": record("a", [1.0])}, threshold=0.0) == []

    def test_limit(self, service):
        documents = [doc(str(i)) for i in range(4)]
        embeddings = {d.id: record(d.id, [1.0, 0.0]) for d in documents}

        assert len(service.search([1.0, 0.0], documents, embeddings, threshold=0.0, limit=2)) == 2


@pytest.mark.parametrize("value,expected", [(-0.3, 0.0), (0.4, 0.4), (1.0000001, 1.0)])
def test_clamp_unit(value, expected):
    assert clamp_unit(value) == pytest.approx(expected)

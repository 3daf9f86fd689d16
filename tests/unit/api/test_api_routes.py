"""HTTP-level tests for the search, similarity and admin routes."""

import pytest
from fastapi.testclient import TestClient

from docsearch.core.container import build_container
from docsearch.infrastructure.persistence import InMemoryDocumentStore
from docsearch.main import create_app
from tests.conftest import make_document
from tests.mocks.fake_services import FakeEmbeddingProvider

API = "/api/v1"


@pytest.fixture
def api_container(settings, corpus):
    documents = corpus + [
        make_document("dup-a", "Quarterly Report", description="Revenue summary", file_hashes=["h1"]),
        make_document("dup-b", "Quarterly Report", description="Revenue summary", file_hashes=["h1"]),
    ]
    return build_container(
        settings,
        document_store=InMemoryDocumentStore(documents),
        embedding_provider=FakeEmbeddingProvider(dimension=8),
    )


@pytest.fixture
def client(settings, api_container):
    app = create_app(settings, api_container)
    with TestClient(app) as test_client:
        yield test_client


def flag_duplicate(client):
    response = client.post(f"{API}/similarity/documents/dup-a/check")
    assert response.status_code == 200
    pending = client.get(f"{API}/similarity/documents/dup-a/pending").json()
    return pending[0]["id"]


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health(self, client):
        body = client.get("/health/detailed").json()

        assert body["status"] == "healthy"
        assert "search" in body["services"]

    def test_routes_unavailable_before_startup(self, settings, api_container):
        app = create_app(settings, api_container)
        client = TestClient(app)

        response = client.post(f"{API}/search", json={"query": "react"})

        assert response.status_code == 503


class TestSearchRoutes:

    def test_keyword_search(self, client):
        response = client.post(f"{API}/search", json={"query": "ReactJS tutorial", "mode": "keyword"})

        assert response.status_code == 200
        body = response.json()
        assert [r["document_id"] for r in body["results"]] == ["doc-react"]
        assert body["search_method"] == "keyword"
        assert body["results"][0]["field_scores"]["title"] == 1.0

    def test_empty_query_returns_empty_page(self, client):
        body = client.post(f"{API}/search", json={"query": "   "}).json()

        assert body["results"] == []
        assert body["total"] == 0
        assert body["total_pages"] == 0

    def test_filters(self, client):
        body = client.post(
            f"{API}/search",
            json={"query": "react", "mode": "keyword", "filters": {"tags": ["food"]}},
        ).json()

        assert body["total"] == 0

    def test_naive_date_filter_is_treated_as_utc(self, client):
        response = client.post(
            f"{API}/search",
            json={"query": "react", "mode": "keyword", "filters": {"date_from": "2024-01-02T00:00:00"}},
        )

        assert response.status_code == 200
        assert [r["document_id"] for r in response.json()["results"]] == ["doc-react"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"query": "react", "limit": 500},
            {"query": "react", "page": 0},
            {"query": "react", "threshold": 2},
            {"query": "react", "mode": "fuzzy"},
        ],
    )
    def test_invalid_requests(self, client, payload):
        assert client.post(f"{API}/search", json=payload).status_code == 422

    def test_metrics(self, client):
        client.post(f"{API}/search", json={"query": "react", "mode": "keyword"})

        body = client.get(f"{API}/search/metrics").json()

        assert body["total_searches"] == 1
        assert body["keyword_searches"] == 1
        assert "search_cache" in body


class TestSimilarityRoutes:

    def test_check_flags_identical_file(self, client):
        body = client.post(f"{API}/similarity/documents/dup-a/check").json()

        assert body["has_similar_documents"] is True
        assert body["highest_similarity_score"] == 1.0
        assert body["matches"][0]["document_id"] == "dup-b"
        assert body["matches"][0]["reason"] == "hash_match"

    def test_check_unknown_document(self, client):
        assert client.post(f"{API}/similarity/documents/missing/check").status_code == 404

    def test_pending_and_decision(self, client):
        record_id = flag_duplicate(client)

        response = client.post(
            f"{API}/similarity/records/{record_id}/decision",
            json={"admin_id": "admin-1", "is_duplicate": True, "notes": "same file"},
        )

        assert response.status_code == 200
        assert response.json()["state"] == "resolved"
        assert response.json()["decision"] == "confirmed"
        assert client.get(f"{API}/similarity/documents/dup-a/pending").json() == []

    def test_second_decision_conflicts(self, client):
        record_id = flag_duplicate(client)
        payload = {"admin_id": "admin-1", "is_duplicate": False}
        client.post(f"{API}/similarity/records/{record_id}/decision", json=payload)

        response = client.post(f"{API}/similarity/records/{record_id}/decision", json=payload)

        assert response.status_code == 409

    def test_decision_on_unknown_record(self, client):
        response = client.post(
            f"{API}/similarity/records/nope/decision", json={"admin_id": "admin-1", "is_duplicate": True}
        )

        assert response.status_code == 404

    def test_queue_and_job_status(self, client):
        response = client.post(f"{API}/similarity/documents/dup-a/queue")

        assert response.status_code == 202
        job_id = response.json()["id"]
        job = client.get(f"{API}/similarity/jobs/{job_id}")
        assert job.status_code == 200
        assert job.json()["document_id"] == "dup-a"

    def test_unknown_job(self, client):
        assert client.get(f"{API}/similarity/jobs/nope").status_code == 404

    def test_compare(self, client):
        body = client.get(f"{API}/similarity/documents/dup-a/compare/dup-b").json()

        assert body["source_document_id"] == "dup-a"
        assert body["combined_score"] == 1.0
        assert body["similar_segments"]


class TestAdminRoutes:

    def test_embedding_status(self, client):
        body = client.get(f"{API}/admin/embeddings/status").json()

        assert body["current_model"] == "fake-v1"
        assert body["total_embeddings"] == 0
        assert body["regeneration_required"] is False

    def test_regenerate(self, client):
        response = client.post(f"{API}/admin/embeddings/regenerate", json={"force": True})

        assert response.status_code == 202
        assert response.json()["is_running"] is True

    def test_progress(self, client):
        body = client.get(f"{API}/admin/embeddings/progress").json()

        assert body["total"] == 0
        assert body["percentage"] == 0.0

    def test_cancel_without_run(self, client):
        assert client.post(f"{API}/admin/embeddings/cancel").json() == {"cancelled": False}

    def test_clear_caches(self, client):
        client.post(f"{API}/search", json={"query": "react", "mode": "keyword"})

        body = client.post(f"{API}/admin/cache/clear").json()

        assert body == {"search_entries": 1, "embedding_entries": 0}

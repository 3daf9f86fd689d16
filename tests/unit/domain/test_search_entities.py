"""Tests for search and similarity value objects."""

from datetime import datetime, timedelta, timezone

import pytest

from docsearch.domain.entities import (
    EmbeddingRecord,
    JobStatus,
    ModerationDecision,
    RegenerationProgress,
    SearchableDocument,
    SearchFilters,
    SearchOptions,
    SearchPage,
    SimilarityJob,
    SimilarityRecord,
    SimilarityState,
)
from docsearch.domain.exceptions import ConcurrencyError, ValidationError

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def doc(**kwargs):
    kwargs.setdefault("id", "d1")
    kwargs.setdefault("title", "Doc")
    kwargs.setdefault("created_at", T0)
    return SearchableDocument(**kwargs)


class TestSearchFilters:

    def test_unapproved_excluded_by_default(self):
        assert not SearchFilters().matches(doc(is_approved=False))
        assert SearchFilters(include_unapproved=True).matches(doc(is_approved=False))

    def test_category_matches_parent(self):
        document = doc(category_id="child", parent_category_id="parent")

        assert SearchFilters(category_id="parent").matches(document)
        assert SearchFilters(category_id="child").matches(document)
        assert not SearchFilters(category_id="other").matches(document)

    def test_tags_match_any_case_insensitive(self):
        document = doc(tags=["Python", "Data"])

        assert SearchFilters(tags=("python", "rust")).matches(document)
        assert not SearchFilters(tags=("rust",)).matches(document)

    def test_rating_language_and_visibility(self):
        document = doc(average_rating=3.5, language="en", is_public=False)

        assert SearchFilters(min_rating=3.5, language="en", is_public=False).matches(document)
        assert not SearchFilters(min_rating=4.0).matches(document)
        assert not SearchFilters(language="de").matches(document)
        assert not SearchFilters(is_public=True).matches(document)

    def test_date_range_is_inclusive(self):
        document = doc(created_at=T0)

        assert SearchFilters(date_from=T0, date_to=T0).matches(document)
        assert not SearchFilters(date_from=T0 + timedelta(seconds=1)).matches(document)
        assert not SearchFilters(date_to=T0 - timedelta(seconds=1)).matches(document)

    def test_naive_dates_are_treated_as_utc(self):
        filters = SearchFilters(date_from=datetime(2024, 1, 1), date_to=datetime(2024, 1, 2))

        assert filters.date_from == T0
        assert filters.matches(doc(created_at=T0))
        assert filters.matches(doc(created_at=datetime(2024, 1, 1, 12)))
        assert not filters.matches(doc(created_at=T0 + timedelta(days=2)))

    def test_cache_dict_omits_unset_filters(self):
        assert SearchFilters().to_cache_dict() == {}
        assert SearchFilters(tags=("b", "a"), language="en").to_cache_dict() == {"tags": ["a", "b"], "language": "en"}


class TestSearchOptions:

    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"limit": 0}, {"limit": 101}, {"threshold": 1.5}, {"threshold": -0.1}],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValidationError):
            SearchOptions(query="q", **kwargs)

    def test_offset(self):
        assert SearchOptions(query="q", page=3, limit=20).offset == 40


class TestSearchPage:

    def test_paging_properties(self):
        page = SearchPage(hits=(), total=25, page=2, limit=10, search_method="hybrid")

        assert page.total_pages == 3
        assert page.has_more

    def test_empty_page(self):
        page = SearchPage.empty(SearchOptions(query=""))

        assert page.total == 0
        assert page.total_pages == 0
        assert not page.has_more


class TestSimilarityRecord:

    def make_record(self):
        return SimilarityRecord(
            source_document_id="a",
            target_document_id="b",
            hash_score=0.0,
            text_score=0.5,
            embedding_score=0.9,
            combined_score=0.86,
        )

    def test_resolve_confirms_duplicate(self):
        record = self.make_record()

        record.resolve(admin_id="admin-1", is_duplicate=True, notes="same file")

        assert record.decision == ModerationDecision.CONFIRMED
        assert record.state == SimilarityState.RESOLVED
        assert record.is_processed
        assert record.processed_by == "admin-1"
        assert record.processed_at is not None

    def test_resolve_dismisses(self):
        record = self.make_record()

        record.resolve(admin_id="admin-1", is_duplicate=False)

        assert record.decision == ModerationDecision.DISMISSED

    def test_second_resolution_conflicts(self):
        record = self.make_record()
        record.resolve(admin_id="admin-1", is_duplicate=True)

        with pytest.raises(ConcurrencyError):
            record.resolve(admin_id="admin-2", is_duplicate=False)
        assert record.processed_by == "admin-1"


class TestJobsAndProgress:

    def test_job_lifecycle(self):
        job = SimilarityJob(document_id="d1")
        assert job.status == JobStatus.PENDING

        job.mark_started()
        assert job.progress == 10
        assert not job.status.is_terminal

        job.mark_completed()
        assert job.progress == 100
        assert job.status.is_terminal

    def test_failed_job(self):
        job = SimilarityJob(document_id="d1")
        job.mark_failed("boom")

        assert job.status == JobStatus.FAILED
        assert job.to_dict()["error_message"] == "boom"

    def test_requeue_resets_interrupted_job(self):
        job = SimilarityJob(document_id="d1")
        job.mark_started()

        job.requeue()

        assert job.status == JobStatus.PENDING
        assert job.started_at is None
        assert job.progress == 0

    def test_progress_percentage(self):
        assert RegenerationProgress().percentage == 0.0
        assert RegenerationProgress(total=3, processed=1, failed=1).percentage == pytest.approx(66.67)

    def test_embedding_staleness(self):
        record = EmbeddingRecord(document_id="d1", vector=[0.1, 0.2], model_version="m1")

        assert record.dimension == 2
        assert record.is_stale("m2")
        assert not record.is_stale("m1")

"""Tests for weighted per-field keyword scoring."""

import pytest

from docsearch.core.scoring_config import KeywordFieldWeights
from docsearch.domain.entities import SearchableDocument
from docsearch.infrastructure.search.keyword_search import KeywordSearchService, document_fields
from docsearch.infrastructure.search.query_processor import QueryProcessor


@pytest.fixture
def processor():
    return QueryProcessor()


@pytest.fixture
def keyword_search(processor):
    return KeywordSearchService(KeywordFieldWeights(), processor)


def doc(document_id, title, **kwargs):
    kwargs.setdefault("description", "")
    return SearchableDocument(id=document_id, title=title, **kwargs)


class TestFieldScoring:

    def test_phrase_match_scores_one(self, keyword_search, processor):
        variants = processor.prepare("react tutorial")

        assert keyword_search.score_field("The React Tutorial", variants) == 1.0

    def test_condensed_match_ignores_spacing(self, keyword_search, processor):
        variants = processor.prepare("node js")

        assert keyword_search.score_field("Intro to Node.js", variants) == 1.0

    def test_partial_token_coverage(self, keyword_search, processor):
        variants = processor.prepare("react tutorial")

        assert keyword_search.score_field("React basics", variants) == pytest.approx(0.5)

    def test_empty_field_scores_zero(self, keyword_search, processor):
        assert keyword_search.score_field("", processor.prepare("react")) == 0.0


class TestDocumentScoring:

    def test_title_match_uses_title_weight(self, keyword_search, processor):
        result = keyword_search.score_document(doc("d1", "Gardening Guide"), processor.prepare("gardening guide"))

        assert result.text_score == pytest.approx(0.40)
        assert result.field_scores["title"] == 1.0
        assert result.sources == ("keyword",)

    def test_every_field_matching_caps_at_one(self, keyword_search, processor):
        document = doc(
            "d1",
            "Gardening",
            description="gardening",
            summary="gardening",
            key_points=["gardening"],
            tags=["gardening"],
            suggested_tags=["gardening"],
        )

        result = keyword_search.score_document(document, processor.prepare("gardening"))

        assert result.text_score == pytest.approx(1.0)

    def test_document_fields_join_lists(self):
        fields = document_fields(doc("d1", "T", key_points=["a", "b"], tags=["x", "y"]))

        assert fields["key_points"] == "a b"
        assert fields["tags"] == "x y"
        assert fields["summary"] == ""


class TestSearch:

    def test_filters_by_threshold_and_orders(self, keyword_search, processor):
        documents = [
            doc("b", "Gardening Guide"),
            doc("a", "Gardening Guide"),
            doc("c", "Cooking Guide"),
            doc("d", "Astronomy"),
        ]

        results = keyword_search.search(processor.prepare("gardening guide"), documents, threshold=0.3)

        assert [r.document_id for r in results] == ["a", "b"]

    def test_zero_threshold_still_drops_non_matches(self, keyword_search, processor):
        results = keyword_search.search(
            processor.prepare("gardening"), [doc("x", "Astronomy")], threshold=0.0
        )

        assert results == []

    def test_empty_query_returns_nothing(self, keyword_search, processor):
        assert keyword_search.search(processor.prepare(""), [doc("a", "Anything")], threshold=0.0) == []

    def test_limit(self, keyword_search, processor):
        documents = [doc(str(i), "Gardening") for i in range(5)]

        results = keyword_search.search(processor.prepare("gardening"), documents, threshold=0.0, limit=2)

        assert len(results) == 2
        assert keyword_search.get_stats()["documents_scored"] == 5

"""Tests for near-duplicate scoring and the duplicate decision policy."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from docsearch.core.scoring_config import SimilarityThresholds, SimilarityWeights, TextSimilarityWeights
from docsearch.domain.entities import DecisionReason, SimilarityScores, SimilaritySignal
from docsearch.domain.services.similarity_scoring import (
    MAX_SEGMENTS,
    SimilarityScorer,
    evaluate_duplicate_policy,
    jaccard_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    normalize_text,
)

unit = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)


@pytest.fixture
def scorer():
    return SimilarityScorer(SimilarityWeights(), TextSimilarityWeights())


@pytest.fixture
def thresholds():
    return SimilarityThresholds()


class TestTextPrimitives:

    def test_normalize_text(self):
        assert normalize_text("  Hello \n  WORLD ") == "hello world"
        assert normalize_text(None) == ""

    def test_jaccard(self):
        assert jaccard_similarity("a b c", "a b d") == pytest.approx(0.5)
        assert jaccard_similarity("", "") == 0.0

    def test_levenshtein(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
        assert levenshtein_similarity("", "") == 1.0


class TestSignals:

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            (["h1", "h2"], ["h2", "h1"], 1.0),
            (["h1", "h2"], ["h1", "h3"], 0.5),
            (["h1"], ["h1", "h2"], 0.5),
            ([], ["h1"], 0.0),
            (["h1"], ["h2"], 0.0),
        ],
    )
    def test_hash_similarity(self, scorer, a, b, expected):
        assert scorer.hash_similarity(a, b) == pytest.approx(expected)

    def test_identical_text_after_normalization(self, scorer):
        assert scorer.text_similarity("Hello World", "hello   world") == 1.0

    def test_empty_text(self, scorer):
        assert scorer.text_similarity("", "something") == 0.0

    def test_short_text_blends_jaccard_and_levenshtein(self, scorer):
        a, b = "the quick brown fox", "the quick brown cat"
        expected = 0.6 * jaccard_similarity(a, b) + 0.4 * levenshtein_similarity(a, b)

        assert scorer.text_similarity(a, b) == pytest.approx(expected)

    def test_long_text_uses_jaccard_only(self, scorer):
        words = [f"w{i}" for i in range(400)]
        a = " ".join(words)
        b = " ".join(words[:200])

        assert scorer.text_similarity(a, b) == pytest.approx(0.5)

    def test_embedding_similarity(self, scorer):
        assert scorer.embedding_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert scorer.embedding_similarity([1.0, 0.0], [-1.0, 0.0]) == 0.0
        assert scorer.embedding_similarity([1.0, 0.0], [1.0]) == 0.0
        assert scorer.embedding_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0
        assert scorer.embedding_similarity(None, [1.0]) == 0.0


class TestCombinedScore:

    def test_identical_documents_score_one(self, scorer, thresholds):
        scores = scorer.score(1.0, 1.0, 1.0)

        assert scores.combined_score == pytest.approx(1.0)
        assert evaluate_duplicate_policy(scores, thresholds).flagged

    def test_weighted_sum(self, scorer):
        assert scorer.combined_score(0.5, 0.5, 1.0) == pytest.approx(0.35 * 0.5 + 0.2 * 0.5 + 0.45)

    @given(unit, unit, unit)
    def test_combined_within_unit_interval(self, hash_score, text_score, embedding_score):
        scorer = SimilarityScorer(SimilarityWeights(), TextSimilarityWeights())

        assert 0.0 <= scorer.combined_score(hash_score, text_score, embedding_score) <= 1.0


class TestDuplicatePolicy:

    def test_hash_match_alone_flags(self, scorer, thresholds):
        decision = evaluate_duplicate_policy(scorer.score(0.95, 0.0, 0.0), thresholds)

        assert decision.flagged
        assert decision.reason == DecisionReason.HASH_MATCH

    def test_combined_score_flags(self, thresholds):
        scores = SimilarityScores(hash_score=0.5, text_score=0.9, embedding_score=0.9, combined_score=0.86)

        assert evaluate_duplicate_policy(scores, thresholds).reason == DecisionReason.COMBINED_SCORE

    def test_embedding_with_partial_hash_flags(self, scorer, thresholds):
        decision = evaluate_duplicate_policy(scorer.score(0.6, 0.0, 0.8), thresholds)

        assert decision.flagged
        assert decision.reason == DecisionReason.EMBEDDING_WITH_HASH

    def test_strong_embedding_without_hash_is_not_flagged(self, scorer, thresholds):
        decision = evaluate_duplicate_policy(scorer.score(0.0, 0.5, 0.99), thresholds)

        assert not decision.flagged
        assert decision.reason == DecisionReason.BELOW_THRESHOLDS

    @given(unit, unit, unit)
    def test_hash_at_threshold_always_flags(self, extra, text_score, embedding_score):
        scorer = SimilarityScorer(SimilarityWeights(), TextSimilarityWeights())
        thresholds = SimilarityThresholds()
        hash_score = thresholds.hash_match + extra * (1.0 - thresholds.hash_match)

        decision = evaluate_duplicate_policy(scorer.score(hash_score, text_score, embedding_score), thresholds)

        assert decision.reason == DecisionReason.HASH_MATCH


class TestExplanation:

    def test_hash_wins_ties(self):
        scores = SimilarityScores(hash_score=0.5, text_score=0.5, embedding_score=0.5, combined_score=0.5)

        assert SimilarityScorer.dominant_signal(scores) == SimilaritySignal.HASH

    def test_embedding_beats_text_on_tie(self):
        scores = SimilarityScores(hash_score=0.1, text_score=0.7, embedding_score=0.7, combined_score=0.5)

        assert SimilarityScorer.dominant_signal(scores) == SimilaritySignal.EMBEDDING

    def test_text_dominant(self):
        scores = SimilarityScores(hash_score=0.0, text_score=0.9, embedding_score=0.2, combined_score=0.3)

        assert SimilarityScorer.dominant_signal(scores) == SimilaritySignal.TEXT

    def test_explanation_text(self):
        scores = SimilarityScores(hash_score=0.0, text_score=0.2, embedding_score=0.9, combined_score=0.87)

        explanation = SimilarityScorer.explain(scores, SimilaritySignal.EMBEDDING)

        assert explanation == "Documents are 87% similar, primarily due to semantic similarity (embedding match: 90%)."


class TestSegments:

    def test_identical_text_yields_bounded_segments(self):
        text = " ".join(f"word{i}" for i in range(300))

        segments = SimilarityScorer.find_similar_segments(text, text)

        assert 0 < len(segments) <= MAX_SEGMENTS
        assert segments[0].similarity == pytest.approx(1.0)

    def test_unrelated_text_yields_none(self):
        assert SimilarityScorer.find_similar_segments("alpha beta gamma", "delta epsilon zeta") == []

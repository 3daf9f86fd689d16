"""
Pure near-duplicate scoring.

Three signals are compared for a document pair:
- hash: overlap of the file content hashes
- text: Jaccard word overlap blended with normalized Levenshtein similarity
- embedding: cosine similarity of stored document embeddings

``evaluate_duplicate_policy`` is the single place deciding whether a scored
pair is flagged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from docsearch.core.scoring_config import (
    SimilarityThresholds,
    SimilarityWeights,
    TextSimilarityWeights,
)
from docsearch.domain.entities import (
    DecisionReason,
    DuplicateDecision,
    SimilarityScores,
    SimilaritySignal,
)

MAX_TEXT_CHARS = 3000
MAX_JACCARD_WORDS = 500
MAX_LEVENSHTEIN_CHARS = 1000
SEGMENT_SIZE = 200
SEGMENT_MIN_SIMILARITY = 0.7
MAX_SEGMENTS = 5


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def normalize_text(text: Optional[str]) -> str:
    """Lowercase, collapse whitespace and truncate."""
    return " ".join((text or "").lower().split())[:MAX_TEXT_CHARS]


def jaccard_similarity(a: str, b: str) -> float:
    words_a = set(a.split()[:MAX_JACCARD_WORDS])
    words_b = set(b.split()[:MAX_JACCARD_WORDS])
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        previous = current
    return previous[-1]


def levenshtein_similarity(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


@dataclass(frozen=True)
class SimilarSegment:
    """A pair of overlapping text windows that look alike."""

    source_text: str
    target_text: str
    similarity: float
    source_start: int
    target_start: int


def _split_segments(text: str, size: int) -> List[tuple]:
    step = max(1, size // 2)
    return [(text[i:i + size], i) for i in range(0, len(text), step)]


class SimilarityScorer:
    """Computes per-signal and combined duplicate scores."""

    def __init__(
        self,
        weights: SimilarityWeights,
        text_weights: TextSimilarityWeights,
    ):
        self.weights = weights
        self.text_weights = text_weights

    @staticmethod
    def hash_similarity(hashes_a: Iterable[str], hashes_b: Iterable[str]) -> float:
        set_a = {h for h in hashes_a if h}
        set_b = {h for h in hashes_b if h}
        if not set_a or not set_b:
            return 0.0
        if set_a == set_b:
            return 1.0
        return len(set_a & set_b) / max(len(set_a), len(set_b))

    def text_similarity(self, text_a: Optional[str], text_b: Optional[str]) -> float:
        a = normalize_text(text_a)
        b = normalize_text(text_b)
        if not a or not b:
            return 0.0
        if a == b:
            return 1.0

        jaccard = jaccard_similarity(a, b)
        if len(a) < MAX_LEVENSHTEIN_CHARS and len(b) < MAX_LEVENSHTEIN_CHARS:
            levenshtein = levenshtein_similarity(a, b)
        else:
            levenshtein = jaccard
        return _clamp(self.text_weights.jaccard * jaccard + self.text_weights.levenshtein * levenshtein)

    @staticmethod
    def embedding_similarity(
        vector_a: Optional[Sequence[float]],
        vector_b: Optional[Sequence[float]],
    ) -> float:
        if not vector_a or not vector_b or len(vector_a) != len(vector_b):
            return 0.0
        a = np.asarray(vector_a, dtype=np.float64)
        b = np.asarray(vector_b, dtype=np.float64)
        norm = np.linalg.norm(a) * np.linalg.norm(b)
        if norm == 0 or not np.isfinite(norm):
            return 0.0
        return _clamp(np.dot(a, b) / norm)

    def combined_score(self, hash_score: float, text_score: float, embedding_score: float) -> float:
        return _clamp(
            self.weights.hash * hash_score
            + self.weights.text * text_score
            + self.weights.embedding * embedding_score
        )

    def score(self, hash_score: float, text_score: float, embedding_score: float) -> SimilarityScores:
        return SimilarityScores(
            hash_score=_clamp(hash_score),
            text_score=_clamp(text_score),
            embedding_score=_clamp(embedding_score),
            combined_score=self.combined_score(hash_score, text_score, embedding_score),
        )

    @staticmethod
    def dominant_signal(scores: SimilarityScores) -> SimilaritySignal:
        """Signal with the highest raw score; hash wins ties, then embedding."""
        if scores.hash_score >= scores.text_score and scores.hash_score >= scores.embedding_score:
            return SimilaritySignal.HASH
        if scores.embedding_score >= scores.text_score:
            return SimilaritySignal.EMBEDDING
        return SimilaritySignal.TEXT

    @staticmethod
    def explain(scores: SimilarityScores, dominant: SimilaritySignal) -> str:
        percentage = round(scores.combined_score * 100)
        if dominant == SimilaritySignal.HASH:
            detail = f"identical file content (hash match: {round(scores.hash_score * 100)}%)"
        elif dominant == SimilaritySignal.TEXT:
            detail = f"similar text content (text match: {round(scores.text_score * 100)}%)"
        else:
            detail = f"semantic similarity (embedding match: {round(scores.embedding_score * 100)}%)"
        return f"Documents are {percentage}% similar, primarily due to {detail}."

    @staticmethod
    def find_similar_segments(
        source_text: str,
        target_text: str,
        min_similarity: float = SEGMENT_MIN_SIMILARITY,
        segment_size: int = SEGMENT_SIZE,
    ) -> List[SimilarSegment]:
        """Return the best overlapping windows by Jaccard word overlap."""
        segments = []
        source_windows = _split_segments(source_text or "", segment_size)
        target_windows = _split_segments(target_text or "", segment_size)
        for source, source_start in source_windows:
            for target, target_start in target_windows:
                similarity = jaccard_similarity(source.lower(), target.lower())
                if similarity >= min_similarity:
                    segments.append(SimilarSegment(source, target, similarity, source_start, target_start))
        segments.sort(key=lambda s: (-s.similarity, s.source_start, s.target_start))
        return segments[:MAX_SEGMENTS]


def evaluate_duplicate_policy(scores: SimilarityScores, thresholds: SimilarityThresholds) -> DuplicateDecision:
    """Decide whether a scored pair is a likely duplicate.

    Order of precedence: hash match alone, combined score, then a strong
    embedding match backed by partial hash overlap.
    """
    if scores.hash_score >= thresholds.hash_match:
        return DuplicateDecision(flagged=True, reason=DecisionReason.HASH_MATCH)
    if scores.combined_score >= thresholds.similarity_detection:
        return DuplicateDecision(flagged=True, reason=DecisionReason.COMBINED_SCORE)
    if scores.embedding_score >= thresholds.embedding_match and scores.hash_score >= thresholds.hash_include:
        return DuplicateDecision(flagged=True, reason=DecisionReason.EMBEDDING_WITH_HASH)
    return DuplicateDecision(flagged=False, reason=DecisionReason.BELOW_THRESHOLDS)


__all__ = [
    "SimilarityScorer",
    "SimilarSegment",
    "evaluate_duplicate_policy",
    "normalize_text",
    "jaccard_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
]

"""
Validated scoring configuration.

All weights and thresholds used by search ranking and similarity detection are
collected here as immutable value objects. Every weight group must sum to 1.0;
``ScoringConfig.from_settings`` raises ``ConfigurationError`` otherwise so that a
bad deployment fails at startup instead of producing skewed rankings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from docsearch.core.config import Settings
from docsearch.domain.exceptions import ConfigurationError

WEIGHT_SUM_TOLERANCE = 1e-9


def ensure_weights_sum_to_one(group: str, weights: Dict[str, float]) -> None:
    """Raise ConfigurationError unless the weights are non-negative and sum to 1.0."""
    negative = [name for name, value in weights.items() if value < 0]
    if negative:
        raise ConfigurationError(f"{group} weights must be non-negative: {', '.join(negative)}")

    total = sum(weights.values())
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise ConfigurationError(f"{group} weights must sum to 1.0 (got {total:.4f})")


def _ensure_unit_interval(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be within [0, 1] (got {value})")


@dataclass(frozen=True)
class HybridWeights:
    """Weights blending vector and text scores."""

    vector: float = 0.65
    text: float = 0.35

    def validate(self) -> None:
        ensure_weights_sum_to_one("Hybrid", {"vector": self.vector, "text": self.text})


@dataclass(frozen=True)
class KeywordFieldWeights:
    """Per-field weights for keyword scoring."""

    title: float = 0.40
    description: float = 0.15
    summary: float = 0.25
    key_points: float = 0.10
    tags: float = 0.06
    suggested_tags: float = 0.04

    def as_dict(self) -> Dict[str, float]:
        return {
            "title": self.title,
            "description": self.description,
            "summary": self.summary,
            "key_points": self.key_points,
            "tags": self.tags,
            "suggested_tags": self.suggested_tags,
        }

    def validate(self) -> None:
        ensure_weights_sum_to_one("Keyword field", self.as_dict())


@dataclass(frozen=True)
class SearchThresholds:
    """Minimum scores for each search method."""

    vector: float = 0.5
    hybrid: float = 0.38
    keyword: float = 0.3

    def validate(self) -> None:
        _ensure_unit_interval("Vector threshold", self.vector)
        _ensure_unit_interval("Hybrid threshold", self.hybrid)
        _ensure_unit_interval("Keyword threshold", self.keyword)


@dataclass(frozen=True)
class SimilarityWeights:
    """Weights of the three duplicate-detection signals."""

    hash: float = 0.35
    text: float = 0.20
    embedding: float = 0.45

    def validate(self) -> None:
        ensure_weights_sum_to_one(
            "Similarity", {"hash": self.hash, "text": self.text, "embedding": self.embedding}
        )


@dataclass(frozen=True)
class TextSimilarityWeights:
    """Sub-weights of the text similarity signal."""

    jaccard: float = 0.6
    levenshtein: float = 0.4

    def validate(self) -> None:
        ensure_weights_sum_to_one(
            "Text similarity", {"jaccard": self.jaccard, "levenshtein": self.levenshtein}
        )


@dataclass(frozen=True)
class SimilarityThresholds:
    """Thresholds of the duplicate decision policy."""

    similarity_detection: float = 0.85
    embedding_match: float = 0.75
    hash_match: float = 0.95
    hash_include: float = 0.6
    auto_flag: float = 0.90

    def validate(self) -> None:
        _ensure_unit_interval("Similarity detection threshold", self.similarity_detection)
        _ensure_unit_interval("Embedding match threshold", self.embedding_match)
        _ensure_unit_interval("Hash match threshold", self.hash_match)
        _ensure_unit_interval("Hash include threshold", self.hash_include)
        _ensure_unit_interval("Auto flag threshold", self.auto_flag)


@dataclass(frozen=True)
class ScoringConfig:
    """Complete scoring configuration shared by search and similarity services."""

    hybrid: HybridWeights = field(default_factory=HybridWeights)
    keyword_fields: KeywordFieldWeights = field(default_factory=KeywordFieldWeights)
    search_thresholds: SearchThresholds = field(default_factory=SearchThresholds)
    similarity: SimilarityWeights = field(default_factory=SimilarityWeights)
    text_similarity: TextSimilarityWeights = field(default_factory=TextSimilarityWeights)
    similarity_thresholds: SimilarityThresholds = field(default_factory=SimilarityThresholds)

    def validate(self) -> "ScoringConfig":
        self.hybrid.validate()
        self.keyword_fields.validate()
        self.search_thresholds.validate()
        self.similarity.validate()
        self.text_similarity.validate()
        self.similarity_thresholds.validate()
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringConfig":
        """Build and validate the scoring configuration from application settings."""
        config = cls(
            hybrid=HybridWeights(
                vector=settings.HYBRID_VECTOR_WEIGHT,
                text=settings.HYBRID_TEXT_WEIGHT,
            ),
            keyword_fields=KeywordFieldWeights(
                title=settings.KEYWORD_WEIGHT_TITLE,
                description=settings.KEYWORD_WEIGHT_DESCRIPTION,
                summary=settings.KEYWORD_WEIGHT_SUMMARY,
                key_points=settings.KEYWORD_WEIGHT_KEY_POINTS,
                tags=settings.KEYWORD_WEIGHT_TAGS,
                suggested_tags=settings.KEYWORD_WEIGHT_SUGGESTED_TAGS,
            ),
            search_thresholds=SearchThresholds(
                vector=settings.VECTOR_SEARCH_THRESHOLD,
                hybrid=settings.HYBRID_SEARCH_THRESHOLD,
                keyword=settings.KEYWORD_SEARCH_THRESHOLD,
            ),
            similarity=SimilarityWeights(
                hash=settings.SIMILARITY_WEIGHT_HASH,
                text=settings.SIMILARITY_WEIGHT_TEXT,
                embedding=settings.SIMILARITY_WEIGHT_EMBEDDING,
            ),
            text_similarity=TextSimilarityWeights(
                jaccard=settings.TEXT_SIMILARITY_JACCARD_WEIGHT,
                levenshtein=settings.TEXT_SIMILARITY_LEVENSHTEIN_WEIGHT,
            ),
            similarity_thresholds=SimilarityThresholds(
                similarity_detection=settings.SIMILARITY_DETECTION_THRESHOLD,
                embedding_match=settings.SIMILARITY_EMBEDDING_MATCH,
                hash_match=settings.SIMILARITY_HASH_MATCH,
                hash_include=settings.SIMILARITY_HASH_INCLUDE,
                auto_flag=settings.SIMILARITY_AUTO_FLAG_THRESHOLD,
            ),
        )
        return config.validate()


__all__ = [
    "ensure_weights_sum_to_one",
    "HybridWeights",
    "KeywordFieldWeights",
    "SearchThresholds",
    "SimilarityWeights",
    "TextSimilarityWeights",
    "SimilarityThresholds",
    "ScoringConfig",
]

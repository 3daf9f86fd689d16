"""Embedding providers, cache and service."""

from .embedding_cache import EmbeddingCache
from .embedding_service import EmbeddingService, build_document_text
from .hashing_provider import HashingEmbeddingProvider
from .openai_provider import OpenAIEmbeddingProvider

__all__ = [
    "EmbeddingCache",
    "EmbeddingService",
    "build_document_text",
    "HashingEmbeddingProvider",
    "OpenAIEmbeddingProvider",
]

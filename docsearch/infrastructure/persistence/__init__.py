"""In-memory repository adapters."""

from .memory_document_store import InMemoryDocumentStore
from .memory_embedding_repository import InMemoryEmbeddingRepository
from .memory_similarity_repository import InMemorySimilarityRepository

__all__ = [
    "InMemoryDocumentStore",
    "InMemoryEmbeddingRepository",
    "InMemorySimilarityRepository",
]

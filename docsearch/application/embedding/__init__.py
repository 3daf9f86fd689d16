"""Embedding maintenance services."""

from .embedding_migration import EmbeddingMigrationService

__all__ = ["EmbeddingMigrationService"]

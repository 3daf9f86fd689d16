"""
Document Search Engine - hybrid semantic/lexical search with near-duplicate detection.

This package provides a FastAPI-based service that ranks documents by combining
embedding similarity with keyword scoring, caches ranked pages, and flags
near-duplicate uploads for moderation review.
"""

__version__ = "1.0.0"

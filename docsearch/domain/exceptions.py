"""
Domain-level exceptions for the search and similarity engine.

These exceptions represent business rule violations and domain logic errors.
They are mapped to HTTP responses in the API layer.
"""


class DomainException(Exception):
    """Base exception for all domain-level errors."""
    pass


class ValidationError(DomainException):
    """Raised when domain validation rules are violated."""
    pass


class NotFoundError(DomainException):
    """Base exception for entities not found."""
    pass


class DocumentNotFoundError(NotFoundError):
    """Raised when a document is not found."""
    pass


class SimilarityRecordNotFoundError(NotFoundError):
    """Raised when a similarity record is not found."""
    pass


class ProcessingError(DomainException):
    """Base exception for processing errors."""
    pass


class SearchError(ProcessingError):
    """Raised when search operations fail."""
    pass


class EmbeddingGenerationError(ProcessingError):
    """Raised when embedding generation fails or times out."""
    pass


class SimilarityDetectionError(ProcessingError):
    """Raised when a similarity detection run cannot be completed."""
    pass


class ConfigurationError(DomainException):
    """Raised when weights, thresholds or wiring are misconfigured."""
    pass


class ConcurrencyError(DomainException):
    """Raised when an operation conflicts with concurrent state."""
    pass


__all__ = [
    "DomainException",
    "ValidationError",
    "NotFoundError",
    "DocumentNotFoundError",
    "SimilarityRecordNotFoundError",
    "ProcessingError",
    "SearchError",
    "EmbeddingGenerationError",
    "SimilarityDetectionError",
    "ConfigurationError",
    "ConcurrencyError",
]

"""
Configuration management for the document search engine.

This module provides centralized configuration management supporting:
- Environment variables and .env files
- OpenAI embedding provider settings with a deterministic local fallback
- Tunable search and similarity weights and thresholds
"""

from functools import lru_cache
from typing import Any, Dict, Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)


class Settings(BaseSettings):
    """
    Application settings with defaults suitable for local development.

    Weight groups are validated as a whole by ``ScoringConfig.from_settings``.
    """

    # Environment Detection
    ENVIRONMENT: str = Field(
        default="local",
        description="Environment (local/development/staging/production)"
    )
    DEBUG: bool = Field(
        default=False,
        description="Debug mode"
    )

    # Core Application Settings
    APP_NAME: str = Field(
        default="Document Search Engine",
        description="Application name"
    )
    APP_VERSION: str = Field(
        default="1.0.0",
        description="Application version"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="Prefix for versioned API routes"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    LOG_FORMAT: str = Field(
        default="auto",
        description="Log renderer: console, json or auto (console on a TTY)"
    )

    # Embedding Provider
    OPENAI_API_KEY: Optional[str] = Field(
        default=None,
        description="OpenAI API key; a deterministic hashing provider is used when unset"
    )
    OPENAI_BASE_URL: Optional[str] = Field(
        default=None,
        description="Optional OpenAI-compatible base URL"
    )
    OPENAI_EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name, also used as the embedding model version"
    )
    EMBEDDING_DIMENSION: int = Field(
        default=1536,
        ge=8,
        description="Dimension of generated embeddings"
    )
    EMBEDDING_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for a single embedding provider call"
    )
    EMBEDDING_MAX_INPUT_CHARS: int = Field(
        default=8000,
        ge=1,
        description="Text sent to the provider is truncated to this length"
    )
    EMBEDDING_CACHE_MAX_SIZE: int = Field(
        default=1500,
        ge=1,
        description="Maximum number of cached embeddings"
    )
    EMBEDDING_MIGRATION_BATCH_SIZE: int = Field(
        default=5,
        ge=1,
        description="Documents regenerated concurrently per migration batch"
    )
    EMBEDDING_MIGRATION_BATCH_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0,
        description="Pause between migration batches"
    )
    EMBEDDING_AUTO_MIGRATE: bool = Field(
        default=False,
        description="Regenerate outdated embeddings on startup"
    )

    # Search
    SEARCH_CACHE_MAX_SIZE: int = Field(
        default=500,
        ge=1,
        description="Maximum number of cached search pages"
    )
    SEARCH_CACHE_TTL_SECONDS: float = Field(
        default=300.0,
        gt=0,
        description="Lifetime of a cached search page"
    )
    SEARCH_DEFAULT_PAGE_SIZE: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Default number of results per page"
    )
    SEARCH_MAX_PAGE_SIZE: int = Field(
        default=100,
        ge=1,
        description="Upper bound on results per page"
    )
    HYBRID_VECTOR_WEIGHT: float = Field(default=0.65, ge=0, le=1, description="Hybrid weight for vector score")
    HYBRID_TEXT_WEIGHT: float = Field(default=0.35, ge=0, le=1, description="Hybrid weight for text score")
    VECTOR_SEARCH_THRESHOLD: float = Field(default=0.5, ge=0, le=1, description="Minimum vector score")
    HYBRID_SEARCH_THRESHOLD: float = Field(default=0.38, ge=0, le=1, description="Minimum combined hybrid score")
    KEYWORD_SEARCH_THRESHOLD: float = Field(default=0.3, ge=0, le=1, description="Minimum keyword score")

    # Keyword field weights
    KEYWORD_WEIGHT_TITLE: float = Field(default=0.40, ge=0, le=1)
    KEYWORD_WEIGHT_DESCRIPTION: float = Field(default=0.15, ge=0, le=1)
    KEYWORD_WEIGHT_SUMMARY: float = Field(default=0.25, ge=0, le=1)
    KEYWORD_WEIGHT_KEY_POINTS: float = Field(default=0.10, ge=0, le=1)
    KEYWORD_WEIGHT_TAGS: float = Field(default=0.06, ge=0, le=1)
    KEYWORD_WEIGHT_SUGGESTED_TAGS: float = Field(default=0.04, ge=0, le=1)

    # Similarity detection
    SIMILARITY_WEIGHT_HASH: float = Field(default=0.35, ge=0, le=1)
    SIMILARITY_WEIGHT_TEXT: float = Field(default=0.20, ge=0, le=1)
    SIMILARITY_WEIGHT_EMBEDDING: float = Field(default=0.45, ge=0, le=1)
    TEXT_SIMILARITY_JACCARD_WEIGHT: float = Field(default=0.6, ge=0, le=1)
    TEXT_SIMILARITY_LEVENSHTEIN_WEIGHT: float = Field(default=0.4, ge=0, le=1)
    SIMILARITY_DETECTION_THRESHOLD: float = Field(
        default=0.85, ge=0, le=1,
        description="Combined score at or above which a pair is flagged"
    )
    SIMILARITY_EMBEDDING_MATCH: float = Field(
        default=0.75, ge=0, le=1,
        description="Embedding score that flags a pair together with SIMILARITY_HASH_INCLUDE"
    )
    SIMILARITY_HASH_MATCH: float = Field(
        default=0.95, ge=0, le=1,
        description="Hash score that flags a pair on its own"
    )
    SIMILARITY_HASH_INCLUDE: float = Field(default=0.6, ge=0, le=1)
    SIMILARITY_AUTO_FLAG_THRESHOLD: float = Field(
        default=0.90, ge=0, le=1,
        description="Combined score at or above which a flagged pair skips manual triage"
    )
    SIMILARITY_MAX_CANDIDATES: int = Field(default=500, ge=1)
    SIMILARITY_BATCH_SIZE: int = Field(default=20, ge=1)
    SIMILARITY_MAX_RESULTS: int = Field(default=10, ge=1)
    SIMILARITY_RETENTION_DAYS: int = Field(
        default=30, ge=1,
        description="Unprocessed records and finished jobs older than this are purged"
    )
    SIMILARITY_SWEEP_INTERVAL_SECONDS: float = Field(
        default=3600.0, gt=0,
        description="Interval of the pending-job and cleanup sweep"
    )
    SIMILARITY_PENDING_JOB_BATCH: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate and normalize environment name."""
        v = v.lower()
        if v not in ('local', 'development', 'staging', 'production', 'test'):
            logger.warning("Unknown environment, defaulting to 'local'", environment=v)
            return 'local'
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        v = v.upper()
        if v not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return v

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    def is_openai_configured(self) -> bool:
        """Check if a real embedding provider is configured."""
        return bool(self.OPENAI_API_KEY)

    def get_openai_config(self) -> Dict[str, Any]:
        """Return keyword arguments for the OpenAI client."""
        config: Dict[str, Any] = {"api_key": self.OPENAI_API_KEY}
        if self.OPENAI_BASE_URL:
            config["base_url"] = self.OPENAI_BASE_URL
        return config


@lru_cache()
def get_settings() -> Settings:
    """Load and cache application settings from the environment and .env file."""
    settings = Settings()

    logger.info(
        "Settings loaded",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        openai_configured=settings.is_openai_configured(),
        embedding_model=settings.OPENAI_EMBEDDING_MODEL,
    )

    return settings

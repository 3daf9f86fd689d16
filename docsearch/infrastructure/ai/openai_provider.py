"""
OpenAI embedding provider.

- Async OpenAI SDK client created lazily
- Exponential backoff on rate limits and connection errors
- Provider metrics for health reporting
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import structlog
from openai import APIConnectionError, AsyncOpenAI, RateLimitError

from docsearch.core.config import Settings
from docsearch.domain.interfaces import IEmbeddingProvider, IHealthCheck

logger = structlog.get_logger(__name__)

RETRYABLE_ERRORS = (RateLimitError, APIConnectionError)


class OpenAIEmbeddingProvider(IEmbeddingProvider, IHealthCheck):
    """Embedding provider backed by the OpenAI embeddings endpoint."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[AsyncOpenAI] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
    ):
        self._settings = settings
        self._client = client
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._metrics = {"embeddings": 0, "retries": 0, "errors": 0}

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            # SDK-level retries are disabled; backoff is handled here
            self._client = AsyncOpenAI(max_retries=0, **self._settings.get_openai_config())
        return self._client

    @property
    def model_version(self) -> str:
        return self._settings.OPENAI_EMBEDDING_MODEL

    @property
    def dimension(self) -> int:
        return self._settings.EMBEDDING_DIMENSION

    async def embed(self, text: str) -> List[float]:
        """
        Generate a single embedding, retrying transient failures.

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        attempt = 0
        while True:
            try:
                start_time = time.perf_counter()
                response = await self.client.embeddings.create(input=text, model=self.model_version)
                embedding = response.data[0].embedding
                self._metrics["embeddings"] += 1
                logger.debug(
                    "Generated embedding",
                    model=self.model_version,
                    dimensions=len(embedding),
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
                return embedding

            except RETRYABLE_ERRORS as e:
                if attempt >= self._max_retries:
                    self._metrics["errors"] += 1
                    raise
                delay = self._base_delay * (2 ** attempt)
                attempt += 1
                self._metrics["retries"] += 1
                logger.warning(
                    "Embedding request failed, retrying",
                    attempt=attempt,
                    delay_seconds=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)

            except Exception:
                self._metrics["errors"] += 1
                raise

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": "OpenAIEmbeddingProvider",
            "model": self.model_version,
            "metrics": self._metrics.copy(),
        }


__all__ = ["OpenAIEmbeddingProvider"]

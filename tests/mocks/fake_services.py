"""Embedding provider doubles with scripted, failing and slow behaviour."""

import asyncio
from typing import Dict, List, Optional

from docsearch.domain.interfaces import IEmbeddingProvider


def unit_vector(index: int, dimension: int = 8) -> List[float]:
    vector = [0.0] * dimension
    vector[index] = 1.0
    return vector


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Returns the vector of the first keyword found in the text.

    Texts matching no keyword get ``default``. Every call is recorded.
    """

    def __init__(
        self,
        dimension: int = 8,
        keyword_vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        model_version: str = "fake-v1",
    ):
        self._dimension = dimension
        self._model_version = model_version
        self.keyword_vectors = keyword_vectors or {}
        self.default = default or unit_vector(dimension - 1, dimension)
        self.calls: List[str] = []

    @property
    def model_version(self) -> str:
        return self._model_version

    @model_version.setter
    def model_version(self, value: str) -> None:
        self._model_version = value

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        lowered = text.lower()
        for keyword, vector in self.keyword_vectors.items():
            if keyword in lowered:
                return list(vector)
        return list(self.default)


class FailingEmbeddingProvider(FakeEmbeddingProvider):
    """Always raises, as an unreachable embedding API would."""

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        raise RuntimeError("embedding backend unavailable")


class FlakyEmbeddingProvider(FakeEmbeddingProvider):
    """Fails while ``failing`` is set, then behaves like the fake provider."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.failing = True

    async def embed(self, text: str) -> List[float]:
        if self.failing:
            self.calls.append(text)
            raise RuntimeError("embedding backend unavailable")
        return await super().embed(text)


class SlowEmbeddingProvider(FakeEmbeddingProvider):
    """Sleeps before answering to exercise timeouts."""

    def __init__(self, delay_seconds: float = 1.0, **kwargs):
        super().__init__(**kwargs)
        self.delay_seconds = delay_seconds

    async def embed(self, text: str) -> List[float]:
        await asyncio.sleep(self.delay_seconds)
        return await super().embed(text)


class EmptyEmbeddingProvider(FakeEmbeddingProvider):
    """Returns an empty vector."""

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return []

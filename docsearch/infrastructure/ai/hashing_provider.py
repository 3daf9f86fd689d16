"""Deterministic embedding provider used when no OpenAI key is configured."""

import hashlib
import re
from typing import List

import numpy as np

from docsearch.domain.interfaces import IEmbeddingProvider

_WORD = re.compile(r"\w+", re.UNICODE)


class HashingEmbeddingProvider(IEmbeddingProvider):
    """Feature-hashing pseudo-embeddings.

    Each word is hashed into a signed bucket, so texts sharing vocabulary get
    similar vectors. Vectors are unit length; identical text always yields an
    identical vector.
    """

    def __init__(self, dimension: int = 768, model_version: str = "hashing-v1"):
        self._dimension = dimension
        self._model_version = model_version

    @property
    def model_version(self) -> str:
        return self._model_version

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> List[float]:
        return self.embed_sync(text)

    def embed_sync(self, text: str) -> List[float]:
        vector = np.zeros(self._dimension, dtype=np.float64)
        for word in _WORD.findall(text.lower()):
            digest = hashlib.sha256(word.encode("utf-8")).digest()
            index = int.from_bytes(digest[:4], "big") % self._dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[index] += sign

        norm = np.linalg.norm(vector)
        if norm == 0:
            seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
            vector = np.random.default_rng(seed).standard_normal(self._dimension)
            norm = np.linalg.norm(vector)

        return (vector / norm).tolist()


__all__ = ["HashingEmbeddingProvider"]

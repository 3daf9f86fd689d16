"""Tests for the bounded embedding cache."""

import pytest

from docsearch.infrastructure.ai.embedding_cache import EmbeddingCache


@pytest.fixture
def cache():
    return EmbeddingCache(max_size=2)


class TestEmbeddingCache:

    @pytest.mark.asyncio
    async def test_round_trip(self, cache):
        await cache.set("hello", "m1", [0.1, 0.2])

        assert await cache.get("hello", "m1") == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_keys_are_scoped_by_model(self, cache):
        await cache.set("hello", "m1", [0.1])

        assert await cache.get("hello", "m2") is None

    @pytest.mark.asyncio
    async def test_returned_vector_is_a_copy(self, cache):
        await cache.set("hello", "m1", [0.1])
        vector = await cache.get("hello", "m1")
        vector.append(9.9)

        assert await cache.get("hello", "m1") == [0.1]

    @pytest.mark.asyncio
    async def test_evicts_oldest_insertion(self, cache):
        await cache.set("a", "m1", [1.0])
        await cache.set("b", "m1", [2.0])
        await cache.get("a", "m1")
        await cache.set("c", "m1", [3.0])

        assert await cache.get("a", "m1") is None
        assert await cache.get("b", "m1") == [2.0]
        assert len(cache) == 2
        assert cache.get_stats()["evictions"] == 1

    @pytest.mark.asyncio
    async def test_clear(self, cache):
        await cache.set("a", "m1", [1.0])

        assert await cache.clear() == 1
        assert len(cache) == 0

    def test_key_format(self):
        key = EmbeddingCache.make_key("hello", "text-embedding-3-small")

        assert key.startswith("text-embedding-3-small:")
        assert len(key.split(":", 1)[1]) == 64

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            EmbeddingCache(max_size=0)

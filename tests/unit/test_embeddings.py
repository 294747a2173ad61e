import asyncio
import json
import time

import httpx
import numpy as np
import pytest

from fakes import unit
from lines_of_thought.config.settings import settings
from lines_of_thought.services.embedding_cache import EmbeddingCache
from lines_of_thought.services.embeddings import EmbeddingError, OllamaEmbeddingAdapter
from lines_of_thought.services.ollama_client import OllamaModelManager


class StubEmbeddingManager:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def generate_embeddings(self, text, model_name=None):  # pragma: no cover - simple stub
        self.calls.append((text, model_name))
        return self.result


class StubRedisStore:
    def __init__(self):
        self.data = {}

    def get(self, key):  # pragma: no cover - simple stub
        return self.data.get(key)

    def set_with_ttl(self, key, value, ttl_type):  # pragma: no cover - simple stub
        assert ttl_type == "embedding"
        self.data[key] = value
        return True


class SlowRedisStore(StubRedisStore):
    delay = 0.2

    def get(self, key):
        time.sleep(self.delay)
        return super().get(key)

    def set_with_ttl(self, key, value, ttl_type):
        time.sleep(self.delay)
        return super().set_with_ttl(key, value, ttl_type)


def success(vector):
    return {"success": True, "embeddings": np.asarray(vector), "dimensions": len(vector)}


@pytest.mark.asyncio
async def test_embed_returns_plain_float_list():
    manager = StubEmbeddingManager(success(unit(0.5, 0.5, dimensions=4)))
    adapter = OllamaEmbeddingAdapter(manager=manager, model_name="all-minilm", dimensions=4)

    vector = await adapter.embed("Is time real?")

    assert vector == [0.5, 0.5, 0.0, 0.0]
    assert all(isinstance(x, float) for x in vector)
    assert manager.calls == [("Is time real?", "all-minilm")]


@pytest.mark.asyncio
async def test_failed_request_raises_instead_of_zero_vector():
    manager = StubEmbeddingManager({"success": False, "error": "connection refused"})
    adapter = OllamaEmbeddingAdapter(manager=manager, dimensions=4)

    with pytest.raises(EmbeddingError, match="connection refused"):
        await adapter.embed("Is time real?")


@pytest.mark.asyncio
async def test_wrong_dimension_is_an_error():
    adapter = OllamaEmbeddingAdapter(manager=StubEmbeddingManager(success([1.0, 0.0])), dimensions=4)

    with pytest.raises(EmbeddingError, match="expected 4"):
        await adapter.embed("Is time real?")


@pytest.mark.asyncio
async def test_cache_hit_skips_model_call():
    cache = EmbeddingCache(redis_store=StubRedisStore())
    manager = StubEmbeddingManager(success(unit(1.0, dimensions=4)))
    adapter = OllamaEmbeddingAdapter(manager=manager, model_name="all-minilm", dimensions=4, cache=cache)

    first = await adapter.embed("Is time real?")
    second = await adapter.embed("Is time real?")

    assert first == second
    assert len(manager.calls) == 1


@pytest.mark.asyncio
async def test_slow_cache_does_not_block_other_requests():
    cache = EmbeddingCache(redis_store=SlowRedisStore())
    adapter = OllamaEmbeddingAdapter(
        manager=StubEmbeddingManager(success(unit(1.0, dimensions=4))), dimensions=4, cache=cache
    )
    ticks = []

    async def ticker():
        start = time.perf_counter()
        for _ in range(10):
            await asyncio.sleep(0.01)
            ticks.append(time.perf_counter() - start)

    await asyncio.gather(adapter.embed("Is time real?"), ticker())

    # Both cache calls together take 0.4s; a blocked loop would delay the first tick that long
    assert ticks[0] < SlowRedisStore.delay


def test_cache_keys_depend_on_model_and_text():
    cache = EmbeddingCache(redis_store=StubRedisStore())

    assert cache.key("all-minilm", "a") != cache.key("all-minilm", "b")
    assert cache.key("all-minilm", "a") != cache.key("other", "a")


def test_corrupt_cache_entry_is_a_miss():
    redis_store = StubRedisStore()
    cache = EmbeddingCache(redis_store=redis_store)
    redis_store.data[cache.key("all-minilm", "a")] = "{not json"

    assert cache.get("all-minilm", "a") is None


@pytest.mark.asyncio
async def test_ollama_manager_posts_to_embeddings_endpoint():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    manager = OllamaModelManager(endpoint="http://ollama.test", client=client)

    result = await manager.generate_embeddings("Is time real?")
    await manager.close()

    assert result["success"] is True
    assert result["dimensions"] == 3
    assert seen == [("/api/embeddings", {"model": settings.EMBEDDING_MODEL, "prompt": "Is time real?"})]


@pytest.mark.asyncio
async def test_ollama_manager_reports_http_errors():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    manager = OllamaModelManager(endpoint="http://ollama.test", client=client)

    result = await manager.generate_text("qwen2.5:7b", "prompt", json_format=True)
    await manager.close()

    assert result["success"] is False
    assert manager.get_performance_metrics()["models"]["qwen2.5:7b"]["success_rate"] == 0.0

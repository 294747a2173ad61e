"""
Embedding Adapter - Text to fixed-length vector

Wraps the Ollama embedding endpoint. The adapter never substitutes a zero
vector: any failure, including a response of the wrong dimension, raises
EmbeddingError and fails the calling request.
"""

import asyncio
import logging
import threading
from typing import List, Optional, Protocol, runtime_checkable

from lines_of_thought.config.settings import settings
from lines_of_thought.services.embedding_cache import EmbeddingCache
from lines_of_thought.services.ollama_client import OllamaModelManager, get_ollama_manager

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Raised when an embedding cannot be produced."""


@runtime_checkable
class EmbeddingAdapter(Protocol):
    """Protocol for text embedders."""

    model_name: str
    dimensions: int

    async def embed(self, text: str) -> List[float]:  # pragma: no cover - interface
        """Return the embedding vector for ``text``."""


class OllamaEmbeddingAdapter:
    """Embeds text with the configured Ollama embedding model."""

    def __init__(
        self,
        manager: Optional[OllamaModelManager] = None,
        model_name: Optional[str] = None,
        dimensions: Optional[int] = None,
        cache: Optional[EmbeddingCache] = None,
    ):
        self._manager = manager
        self.model_name = model_name or settings.EMBEDDING_MODEL
        self.dimensions = dimensions or settings.EMBEDDING_DIMENSIONS
        self.cache = cache

    @property
    def manager(self) -> OllamaModelManager:
        if self._manager is None:
            self._manager = get_ollama_manager()
        return self._manager

    async def embed(self, text: str) -> List[float]:
        if self.cache is not None:
            cached = await asyncio.to_thread(self.cache.get, self.model_name, text)
            if cached is not None and len(cached) == self.dimensions:
                return cached

        result = await self.manager.generate_embeddings(text, model_name=self.model_name)
        if not result.get("success"):
            raise EmbeddingError(f"Embedding request failed: {result.get('error', 'unknown error')}")

        vector = [float(x) for x in result["embeddings"]]
        if len(vector) != self.dimensions:
            raise EmbeddingError(
                f"Embedding model {self.model_name} returned {len(vector)} dimensions, "
                f"expected {self.dimensions}"
            )

        if self.cache is not None:
            await asyncio.to_thread(self.cache.set, self.model_name, text, vector)
        return vector


_adapter: Optional[OllamaEmbeddingAdapter] = None
_adapter_lock = threading.Lock()


def get_embedding_adapter() -> OllamaEmbeddingAdapter:
    """Return the process-wide embedding adapter, creating it exactly once."""
    global _adapter
    if _adapter is None:
        with _adapter_lock:
            if _adapter is None:
                cache = EmbeddingCache() if settings.EMBEDDING_CACHE_ENABLED else None
                _adapter = OllamaEmbeddingAdapter(cache=cache)
                logger.info(f"Embedding adapter ready ({_adapter.model_name}, {_adapter.dimensions} dims)")
    return _adapter

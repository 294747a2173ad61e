"""Redis-backed embedding cache keyed by model and text digest."""

import hashlib
import json
import logging
from typing import List, Optional

from lines_of_thought.config.redis_config import RedisConfig, redis_config

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """
    Caches embedding vectors in Redis.

    Cache failures never fail an embedding request: reads degrade to a miss
    and writes are dropped.
    """

    def __init__(self, redis_store: Optional[RedisConfig] = None, namespace: str = "lot:embedding"):
        self.redis_store = redis_store or redis_config
        self.namespace = namespace

    def key(self, model_name: str, text: str) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"{self.namespace}:{model_name}:{digest}"

    def get(self, model_name: str, text: str) -> Optional[List[float]]:
        raw = self.redis_store.get(self.key(model_name, text))
        if not raw:
            return None
        try:
            vector = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding corrupt cached embedding: {e}")
            return None
        if not isinstance(vector, list):
            return None
        return [float(x) for x in vector]

    def set(self, model_name: str, text: str, vector: List[float]) -> bool:
        stored = self.redis_store.set_with_ttl(self.key(model_name, text), json.dumps(vector), "embedding")
        if not stored:
            logger.debug(f"Embedding for model {model_name} not cached")
        return stored

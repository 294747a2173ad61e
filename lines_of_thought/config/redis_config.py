"""Redis configuration with TTL settings for embedding cache and telemetry."""

import redis
import time
from typing import Optional
import logging
from .settings import settings

logger = logging.getLogger(__name__)

EMBEDDING_TTL = settings.EMBEDDING_CACHE_TTL
TELEMETRY_TTL = 30 * 24 * 60 * 60  # 30 days
RECONNECT_BACKOFF = 30.0  # seconds between connection attempts after a failure

class RedisConfig:
    """Redis configuration and connection management."""

    def __init__(self, redis_url: Optional[str] = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self._client: Optional[redis.Redis] = None
        self._retry_at = 0.0

    @property
    def client(self) -> redis.Redis:
        """Get Redis client connection."""
        if self._client is None:
            if time.monotonic() < self._retry_at:
                raise redis.ConnectionError("Redis unavailable, waiting before reconnecting")
            client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                health_check_interval=30
            )
            # Test connection
            try:
                client.ping()
                logger.info("Redis connection established")
            except redis.ConnectionError as e:
                logger.error(f"Redis connection failed: {e}")
                self._retry_at = time.monotonic() + RECONNECT_BACKOFF
                raise
            self._client = client
        return self._client

    def set_with_ttl(self, key: str, value: str, ttl_type: str) -> bool:
        """Set value with appropriate TTL based on data type."""
        ttl_mapping = {
            "embedding": EMBEDDING_TTL,
            "telemetry": TELEMETRY_TTL,
        }

        ttl = ttl_mapping.get(ttl_type, TELEMETRY_TTL)

        try:
            return bool(self.client.setex(key, ttl, value))
        except redis.RedisError as e:
            logger.error(f"Redis set failed for key {key}: {e}")
            return False

    def get(self, key: str) -> Optional[str]:
        """Read a key, treating Redis errors as a miss."""
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis get failed for key {key}: {e}")
            return None

# Global Redis instance
redis_config = RedisConfig()

def get_redis_client() -> redis.Redis:
    """Get the global Redis client."""
    return redis_config.client

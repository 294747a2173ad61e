"""Telemetry collection for classifier providers."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

import redis

from lines_of_thought.config.redis_config import RedisConfig, redis_config

logger = logging.getLogger(__name__)


@dataclass
class ProviderMetrics:
    """Aggregate metrics for a single provider."""

    provider: str
    total_calls: int = 0
    successes: int = 0
    failures: int = 0
    total_latency_ms: float = 0.0
    total_cost: float = 0.0
    last_error: Optional[str] = None
    last_updated: Optional[str] = None

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.successes / self.total_calls

    @property
    def average_latency_ms(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.total_latency_ms / self.total_calls


class TelemetryStore:
    """Persist provider telemetry in Redis with in-memory fallback."""

    def __init__(self, redis_store: Optional[RedisConfig] = None, namespace: str = "lot:llm:telemetry") -> None:
        self.redis_store = redis_store
        self.namespace = namespace
        self._cache: Dict[str, ProviderMetrics] = {}
        self._lock = threading.Lock()

    def _key(self, provider: str) -> str:
        return f"{self.namespace}:{provider}"

    def _load(self, provider: str) -> ProviderMetrics:
        if provider in self._cache:
            return self._cache[provider]

        metrics = ProviderMetrics(provider=provider)
        if self.redis_store is not None:
            data = self.redis_store.get(self._key(provider))
            if data:
                try:
                    metrics = ProviderMetrics(**json.loads(data))
                except (ValueError, TypeError) as exc:
                    logger.warning(f"Ignoring unreadable telemetry for {provider}: {exc}")
                    metrics = ProviderMetrics(provider=provider)

        self._cache[provider] = metrics
        return metrics

    def _persist(self, metrics: ProviderMetrics) -> None:
        self._cache[metrics.provider] = metrics
        if self.redis_store is not None:
            self.redis_store.set_with_ttl(self._key(metrics.provider), json.dumps(asdict(metrics)), "telemetry")

    def _record(self, provider: str, latency_ms: float, cost: float, error: Optional[str]) -> ProviderMetrics:
        with self._lock:
            metrics = self._load(provider)
            metrics.total_calls += 1
            if error is None:
                metrics.successes += 1
            else:
                metrics.failures += 1
            metrics.total_latency_ms += latency_ms
            metrics.total_cost += cost
            metrics.last_error = error
            metrics.last_updated = datetime.now(timezone.utc).isoformat()
            self._persist(metrics)
            return metrics

    def record_success(self, provider: str, latency_ms: float, cost: float = 0.0) -> ProviderMetrics:
        return self._record(provider, latency_ms, cost, None)

    def record_failure(self, provider: str, latency_ms: float, error: str, cost: float = 0.0) -> ProviderMetrics:
        return self._record(provider, latency_ms, cost, error)

    def get_metrics(self, provider: str) -> ProviderMetrics:
        with self._lock:
            return self._load(provider)

    def get_all_metrics(self) -> Dict[str, ProviderMetrics]:
        with self._lock:
            return dict(self._cache)


_default_store: Optional[TelemetryStore] = None
_default_lock = threading.Lock()


def get_telemetry_store() -> TelemetryStore:
    """Return global telemetry store singleton."""

    global _default_store
    if _default_store is None:
        with _default_lock:
            if _default_store is None:
                store: Optional[RedisConfig] = redis_config
                try:
                    redis_config.client
                except redis.RedisError as exc:
                    logger.warning(f"Telemetry falling back to in-memory store: {exc}")
                    store = None
                _default_store = TelemetryStore(redis_store=store)
    return _default_store


__all__ = [
    "ProviderMetrics",
    "TelemetryStore",
    "get_telemetry_store",
]

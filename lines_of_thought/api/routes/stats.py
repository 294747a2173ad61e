"""Stats endpoints for classifier and model telemetry."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter

from lines_of_thought.services.llm import ProviderMetrics, load_provider_registry, get_telemetry_store
from lines_of_thought.services.ollama_client import get_ollama_manager

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/llm/providers")
async def get_llm_provider_metrics() -> Dict[str, Any]:
    """Expose moderation and scoring provider telemetry for dashboards and tooling."""

    registry = load_provider_registry()
    telemetry_store = get_telemetry_store()
    metrics_map = telemetry_store.get_all_metrics()

    providers: List[Dict[str, Any]] = []
    for name, provider in registry.items():
        metrics: ProviderMetrics = metrics_map.get(name, ProviderMetrics(provider=name))
        providers.append({
            "provider": name,
            "runtime": provider.runtime,
            "model": provider.model,
            "cost_per_1k_tokens": provider.cost_per_1k_tokens,
            "preferred_tasks": provider.preferred_tasks,
            "total_calls": metrics.total_calls,
            "successes": metrics.successes,
            "failures": metrics.failures,
            "success_rate": metrics.success_rate,
            "average_latency_ms": metrics.average_latency_ms,
            "total_cost": metrics.total_cost,
            "last_error": metrics.last_error,
            "last_updated": metrics.last_updated,
        })

    return {
        "providers": providers,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/models")
async def get_model_metrics() -> Dict[str, Any]:
    """Request counts and latency per Ollama model since process start."""

    metrics = get_ollama_manager().get_performance_metrics()
    metrics["timestamp"] = datetime.now(timezone.utc).isoformat()
    return metrics

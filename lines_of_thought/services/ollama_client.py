"""
Ollama Client for Thought Quality Checks
========================================

Local model access through the Ollama HTTP API:
- /api/embeddings for the embedding adapter (originality checks, search)
- /api/generate in JSON mode for moderation and argument scoring

Calls are never retried here. Callers decide whether a failure is fatal
(embeddings) or degrades gracefully (moderation, scoring).
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
import numpy as np

from lines_of_thought.config.settings import settings

logger = logging.getLogger(__name__)


class ModelType(Enum):
    """What a configured model is used for"""
    CLASSIFIER = "classifier"  # moderation and argument scoring
    EMBEDDING = "embedding"


class ModelStatus(Enum):
    """Model availability as seen by the last health probe"""
    HEALTHY = "healthy"
    SLOW = "slow"
    ERROR = "error"


@dataclass
class ModelConfig:
    """Per-model request settings"""
    name: str
    type: ModelType
    timeout: float = 30.0
    temperature: float = 0.3
    top_p: float = 0.9

    # Probe latency bounds in seconds
    healthy_response_time: float = 5.0
    slow_response_time: float = 15.0

    def classify_latency(self, seconds: float) -> ModelStatus:
        if seconds <= self.healthy_response_time:
            return ModelStatus.HEALTHY
        if seconds <= self.slow_response_time:
            return ModelStatus.SLOW
        return ModelStatus.ERROR


@dataclass
class ModelHealthStatus:
    """Result of one health probe"""
    model_name: str
    status: ModelStatus
    last_check: datetime
    response_time: float
    error_message: Optional[str] = None


def default_models() -> Dict[str, ModelConfig]:
    """Classifier models referenced by the routing policies plus the embedder."""
    models = [
        ModelConfig(name="qwen2.5:7b", type=ModelType.CLASSIFIER, timeout=30.0),
        ModelConfig(name="llama3.2:3b", type=ModelType.CLASSIFIER, timeout=20.0),
        ModelConfig(name=settings.EMBEDDING_MODEL, type=ModelType.EMBEDDING, timeout=15.0, temperature=0.0),
    ]
    return {model.name: model for model in models}


class OllamaModelManager:
    """Thin async wrapper over the Ollama API with request bookkeeping"""

    max_history = 1000

    def __init__(self, endpoint: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.endpoint = (endpoint or settings.OLLAMA_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=60.0)
        self.models = default_models()
        self.health_status: Dict[str, ModelHealthStatus] = {}
        self.request_history: List[Dict[str, Any]] = []
        logger.info(f"Configured {len(self.models)} Ollama models at {self.endpoint}")

    def _model(self, model_name: str) -> ModelConfig:
        model = self.models.get(model_name)
        if model is None:
            raise ValueError(f"Unknown model: {model_name}")
        return model

    async def _post(self, path: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        response = await self.client.post(f"{self.endpoint}{path}", json=payload, timeout=timeout)
        response.raise_for_status()
        return response.json()

    async def check_model_health(self, model_name: str) -> ModelHealthStatus:
        """Send a tiny request to a model and grade the response time"""
        model = self._model(model_name)
        start = time.perf_counter()

        if model.type == ModelType.EMBEDDING:
            path, payload = "/api/embeddings", {"model": model_name, "prompt": "health"}
        else:
            path, payload = "/api/generate", {
                "model": model_name,
                "prompt": "health",
                "stream": False,
                "options": {"num_predict": 1},
            }

        try:
            await self._post(path, payload, model.timeout)
            elapsed = time.perf_counter() - start
            health = ModelHealthStatus(model_name, model.classify_latency(elapsed), datetime.now(), elapsed)
        except (httpx.HTTPError, ValueError) as e:
            elapsed = time.perf_counter() - start
            logger.error(f"Model {model_name} health check failed: {e}")
            health = ModelHealthStatus(model_name, ModelStatus.ERROR, datetime.now(), elapsed, str(e))

        self.health_status[model_name] = health
        return health

    async def generate_text(self, model_name: str, prompt: str, **kwargs) -> Dict[str, Any]:
        """
        Single non-streaming completion.

        Keyword options: temperature, top_p, max_tokens, timeout (seconds) and
        json_format, which asks Ollama to constrain output to JSON.
        Returns a dict with ``success`` and either ``response`` or ``error``.
        """
        start = time.perf_counter()
        try:
            model = self._model(model_name)
            payload = {
                "model": model_name,
                "prompt": prompt,
                "stream": False,
                "options": {
                    "temperature": kwargs.get("temperature", model.temperature),
                    "top_p": kwargs.get("top_p", model.top_p),
                    "num_predict": kwargs.get("max_tokens", 256),
                },
            }
            if kwargs.get("json_format"):
                payload["format"] = "json"

            body = await self._post("/api/generate", payload, kwargs.get("timeout", model.timeout))
        except (httpx.HTTPError, ValueError) as e:
            elapsed = time.perf_counter() - start
            self._track_request(model_name, "generate", elapsed, False, str(e))
            logger.error(f"Text generation failed with {model_name}: {e}")
            return {"success": False, "error": str(e), "model": model_name, "processing_time": elapsed}

        elapsed = time.perf_counter() - start
        self._track_request(model_name, "generate", elapsed, True)
        return {
            "success": True,
            "response": body.get("response", ""),
            "model": model_name,
            "processing_time": elapsed,
            "prompt_eval_count": body.get("prompt_eval_count", 0),
            "eval_count": body.get("eval_count", 0),
        }

    async def generate_embeddings(self, text: str, model_name: Optional[str] = None) -> Dict[str, Any]:
        """Embed ``text``; ``embeddings`` is a float64 numpy vector on success"""
        model_name = model_name or settings.EMBEDDING_MODEL
        start = time.perf_counter()
        try:
            model = self._model(model_name)
            body = await self._post("/api/embeddings", {"model": model_name, "prompt": text}, model.timeout)
            vector = np.asarray(body.get("embedding", []), dtype=np.float64)
        except (httpx.HTTPError, ValueError) as e:
            elapsed = time.perf_counter() - start
            self._track_request(model_name, "embeddings", elapsed, False, str(e))
            logger.error(f"Embedding generation failed with {model_name}: {e}")
            return {"success": False, "error": str(e), "model": model_name, "processing_time": elapsed}

        elapsed = time.perf_counter() - start
        self._track_request(model_name, "embeddings", elapsed, True)
        return {
            "success": True,
            "embeddings": vector,
            "model": model_name,
            "processing_time": elapsed,
            "dimensions": len(vector),
        }

    def _track_request(self, model_name: str, request_type: str, processing_time: float,
                       success: bool, error: Optional[str] = None):
        self.request_history.append({
            "timestamp": datetime.now().isoformat(),
            "model": model_name,
            "type": request_type,
            "processing_time": processing_time,
            "success": success,
            "error": error,
        })
        if len(self.request_history) > self.max_history:
            del self.request_history[:-self.max_history]

    def get_performance_metrics(self) -> Dict[str, Any]:
        """Request counts, success rate and mean latency per model"""
        models: Dict[str, Any] = {}
        for model_name in self.models:
            requests = [r for r in self.request_history if r["model"] == model_name]
            if not requests:
                continue
            succeeded = [r for r in requests if r["success"]]
            health = self.health_status.get(model_name)
            models[model_name] = {
                "total_requests": len(requests),
                "successful_requests": len(succeeded),
                "success_rate": len(succeeded) / len(requests),
                "avg_processing_time": (
                    sum(r["processing_time"] for r in succeeded) / len(succeeded) if succeeded else 0
                ),
                "health_status": health.status.value if health else "unknown",
            }
        return {"total_requests": len(self.request_history), "models": models}

    async def close(self):
        await self.client.aclose()


_manager: Optional[OllamaModelManager] = None
_manager_lock = threading.Lock()


def get_ollama_manager() -> OllamaModelManager:
    """Return the process-wide Ollama manager, creating it exactly once."""
    global _manager
    if _manager is None:
        with _manager_lock:
            if _manager is None:
                _manager = OllamaModelManager()
    return _manager


async def cleanup_ollama_manager() -> None:
    """Close the shared manager's HTTP client, if one was created."""
    global _manager
    with _manager_lock:
        manager, _manager = _manager, None
    if manager is not None:
        await manager.close()
        logger.info("Ollama client cleanup completed")

"""Policy-routed JSON classifier shared by moderation and argument scoring."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from typing import Any, Dict, Optional

from lines_of_thought.services.ollama_client import OllamaModelManager, get_ollama_manager

from .policies import PolicyNotFoundError
from .provider_registry import ProviderNotFoundError
from .router import ProviderRouter
from .telemetry import get_telemetry_store

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class ClassifierError(Exception):
    """Raised when a classifier call fails or returns unusable output."""


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Extract the first JSON object from a model response."""
    text = raw.strip()
    if not text:
        raise ClassifierError("empty response from provider")

    match = _JSON_OBJECT.search(text)
    if match is None:
        raise ClassifierError(f"no JSON object in response: {text[:80]!r}")

    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ClassifierError(f"unparseable JSON in response: {exc}") from exc

    if not isinstance(payload, dict):
        raise ClassifierError("response JSON is not an object")
    return payload


class PolicyRoutedClassifier:
    """
    Sends a prompt to the provider chosen by the task's routing policy and
    returns the parsed JSON object. Every call is recorded in telemetry.
    """

    task_type = ""

    def __init__(
        self,
        router: Optional[ProviderRouter] = None,
        ollama_manager: Optional[OllamaModelManager] = None,
        telemetry_store=None,
    ) -> None:
        self.router = router or ProviderRouter()
        self.ollama_manager = ollama_manager or get_ollama_manager()
        self.telemetry = telemetry_store or get_telemetry_store()

    async def classify(self, prompt: str) -> Dict[str, Any]:
        try:
            selection = self.router.select(self.task_type)
        except (PolicyNotFoundError, ProviderNotFoundError) as error:
            raise ClassifierError(f"no provider for {self.task_type}: {error}") from error

        provider = selection.provider
        policy = selection.policy
        start = time.perf_counter()

        try:
            if provider.runtime != "ollama":
                raise ClassifierError(
                    f"Provider {provider.name} not yet supported by runtime orchestrator"
                )
            result = await self.ollama_manager.generate_text(
                provider.model,
                prompt,
                max_tokens=policy.max_tokens,
                temperature=policy.temperature,
                timeout=policy.timeout_ms / 1000,
                json_format=True,
            )
            if not result.get("success"):
                raise ClassifierError(result.get("error", "unknown generation failure"))
            payload = parse_json_object(result.get("response", ""))
        except ClassifierError as error:
            latency_ms = (time.perf_counter() - start) * 1000
            await asyncio.to_thread(self.telemetry.record_failure, provider.name, latency_ms, str(error))
            logger.warning(f"{self.task_type} classifier failed via {provider.name}: {error}")
            raise

        latency_ms = (time.perf_counter() - start) * 1000
        cost_estimate = provider.cost_per_1k_tokens * (policy.max_tokens / 1000)
        await asyncio.to_thread(self.telemetry.record_success, provider.name, latency_ms, cost_estimate)
        return payload

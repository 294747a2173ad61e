"""Static provider registry for the moderation and argument-scoring classifiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional


class ProviderNotFoundError(KeyError):
    """Raised when a requested provider is not present in the registry."""


@dataclass
class LLMProvider:
    """Capability metadata for a single LLM provider."""

    name: str
    runtime: str
    model: str
    cost_per_1k_tokens: float
    preferred_tasks: List[str] = field(default_factory=list)

    def copy(self) -> "LLMProvider":
        """Return a copy suitable for safe mutation by callers."""
        return LLMProvider(
            name=self.name,
            runtime=self.runtime,
            model=self.model,
            cost_per_1k_tokens=self.cost_per_1k_tokens,
            preferred_tasks=list(self.preferred_tasks),
        )


_BASE_REGISTRY: Dict[str, Optional[LLMProvider]] = {
    "ollama.qwen2.5-7b": LLMProvider(
        name="ollama.qwen2.5-7b",
        runtime="ollama",
        model="qwen2.5:7b",
        cost_per_1k_tokens=0.0,
        preferred_tasks=["moderation", "argument_scoring"],
    ),
    "ollama.llama3.2-3b": LLMProvider(
        name="ollama.llama3.2-3b",
        runtime="ollama",
        model="llama3.2:3b",
        cost_per_1k_tokens=0.0,
        preferred_tasks=["moderation", "argument_scoring"],
    ),
}


def _clone_registry(providers: Iterable[Optional[LLMProvider]]) -> Dict[str, LLMProvider]:
    """Create a fresh mapping of provider name to a safe copy."""
    return {provider.name: provider.copy() for provider in providers if provider is not None}


def load_provider_registry() -> Dict[str, LLMProvider]:
    """Return a fully cloned provider registry."""
    return _clone_registry(_BASE_REGISTRY.values())


def get_provider(name: str) -> LLMProvider:
    """Return a copy of the requested provider."""
    provider = _BASE_REGISTRY.get(name)
    if provider is None:
        raise ProviderNotFoundError(name)
    return provider.copy()

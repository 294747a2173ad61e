"""Per-task routing policies for the moderation and argument-scoring classifiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import yaml

_POLICY_FILE = Path(__file__).resolve().parent.parent.parent / "config" / "llm_policies.yaml"

MODERATION = "moderation"
ARGUMENT_SCORING = "argument_scoring"


class PolicyNotFoundError(KeyError):
    """Raised when a routing policy is missing."""


@dataclass
class LLMPolicy:
    """Declarative routing policy for a given task type."""

    task_type: str
    primary_provider: str
    fallback_providers: List[str] = field(default_factory=list)
    timeout_ms: int = 10_000
    max_tokens: int = 200
    temperature: float = 0.3

    def copy(self) -> "LLMPolicy":
        return LLMPolicy(
            task_type=self.task_type,
            primary_provider=self.primary_provider,
            fallback_providers=list(self.fallback_providers),
            timeout_ms=self.timeout_ms,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


def _default_policies() -> Dict[str, LLMPolicy]:
    return {
        MODERATION: LLMPolicy(
            task_type=MODERATION,
            primary_provider="ollama.qwen2.5-7b",
            fallback_providers=["ollama.llama3.2-3b"],
            timeout_ms=10_000,
            max_tokens=200,
            temperature=0.3,
        ),
        ARGUMENT_SCORING: LLMPolicy(
            task_type=ARGUMENT_SCORING,
            primary_provider="ollama.qwen2.5-7b",
            fallback_providers=["ollama.llama3.2-3b"],
            timeout_ms=15_000,
            max_tokens=300,
            temperature=0.3,
        ),
    }


def _load_policy_file() -> Dict[str, LLMPolicy]:
    if not _POLICY_FILE.exists():
        return {}

    with open(_POLICY_FILE, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    policies: Dict[str, LLMPolicy] = {}
    for item in data.get("policies", []):
        policy = LLMPolicy(
            task_type=item["task_type"],
            primary_provider=item["primary_provider"],
            fallback_providers=item.get("fallback_providers", []),
            timeout_ms=item.get("timeout_ms", 10_000),
            max_tokens=item.get("max_tokens", 200),
            temperature=item.get("temperature", 0.3),
        )
        policies[policy.task_type] = policy
    return policies


def load_policies() -> Dict[str, LLMPolicy]:
    base = _default_policies()
    base.update(_load_policy_file())
    return {key: policy.copy() for key, policy in base.items()}

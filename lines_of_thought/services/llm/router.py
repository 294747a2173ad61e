"""Routing logic for the classifier providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .provider_registry import LLMProvider, ProviderNotFoundError, get_provider
from .policies import LLMPolicy, PolicyNotFoundError, load_policies

logger = logging.getLogger(__name__)


@dataclass
class ProviderSelection:
    """Result of choosing a provider for a task."""

    provider: LLMProvider
    policy: LLMPolicy
    attempted_providers: Dict[str, str]


class ProviderRouter:
    """Determines which provider should handle a task based on policies."""

    def __init__(self, policies: Optional[Dict[str, LLMPolicy]] = None) -> None:
        self._policies = policies or load_policies()

    def select(self, task_type: str) -> ProviderSelection:
        policy = self._policies.get(task_type)
        if policy is None:
            raise PolicyNotFoundError(task_type)

        attempted: Dict[str, str] = {}
        for candidate in [policy.primary_provider, *policy.fallback_providers]:
            try:
                provider = get_provider(candidate)
            except ProviderNotFoundError:
                attempted[candidate] = "missing"
                continue
            attempted[candidate] = "selected"
            if candidate != policy.primary_provider:
                logger.warning(f"Primary provider for {task_type} unavailable, using {candidate}")
            return ProviderSelection(provider=provider, policy=policy.copy(), attempted_providers=attempted)

        raise ProviderNotFoundError(
            f"No valid providers available for task {task_type} (checked: {attempted})"
        )

    def refresh(self) -> None:
        """Reload policies from disk."""
        self._policies = load_policies()

import pytest

import fakes  # noqa: F401
from lines_of_thought.services.llm import policies, provider_registry, router
from lines_of_thought.services.llm.policies import ARGUMENT_SCORING, MODERATION


def test_router_selects_primary_provider():
    selection = router.ProviderRouter(policies.load_policies()).select(MODERATION)

    assert selection.provider.name == "ollama.qwen2.5-7b"
    assert selection.attempted_providers["ollama.qwen2.5-7b"] == "selected"
    assert selection.policy.max_tokens == 200


def test_router_falls_back_when_primary_missing(monkeypatch):
    monkeypatch.setitem(provider_registry._BASE_REGISTRY, "ollama.qwen2.5-7b", None)  # type: ignore[attr-defined]

    selection = router.ProviderRouter(policies.load_policies()).select(MODERATION)

    assert selection.provider.name == "ollama.llama3.2-3b"
    assert selection.attempted_providers["ollama.qwen2.5-7b"] == "missing"


def test_argument_scoring_falls_back_to_local_model(monkeypatch):
    monkeypatch.setitem(provider_registry._BASE_REGISTRY, "ollama.qwen2.5-7b", None)  # type: ignore[attr-defined]

    selection = router.ProviderRouter(policies.load_policies()).select(ARGUMENT_SCORING)

    assert selection.provider.name == "ollama.llama3.2-3b"
    assert selection.provider.runtime == "ollama"


def test_router_raises_when_no_provider_remains(monkeypatch):
    monkeypatch.setitem(provider_registry._BASE_REGISTRY, "ollama.qwen2.5-7b", None)  # type: ignore[attr-defined]
    monkeypatch.setitem(provider_registry._BASE_REGISTRY, "ollama.llama3.2-3b", None)  # type: ignore[attr-defined]

    with pytest.raises(provider_registry.ProviderNotFoundError):
        router.ProviderRouter(policies.load_policies()).select(ARGUMENT_SCORING)


def test_unknown_task_raises():
    with pytest.raises(policies.PolicyNotFoundError):
        router.ProviderRouter(policies.load_policies()).select("chat")


def test_router_refresh_reloads_policy(tmp_path, monkeypatch):
    policy_file = tmp_path / "llm_policies.yaml"
    policy_file.write_text(
        """
policies:
  - task_type: argument_scoring
    primary_provider: ollama.llama3.2-3b
    fallback_providers: []
    timeout_ms: 5000
    max_tokens: 120
"""
    )

    router_instance = router.ProviderRouter()
    monkeypatch.setattr(policies, "_POLICY_FILE", policy_file)
    router_instance.refresh()

    selection = router_instance.select(ARGUMENT_SCORING)
    assert selection.provider.name == "ollama.llama3.2-3b"
    assert selection.policy.timeout_ms == 5000
    assert selection.policy.max_tokens == 120
    assert router_instance.select(MODERATION).provider.name == "ollama.qwen2.5-7b"

"""LLM classifier orchestration package."""

from .provider_registry import (  # noqa: F401
    LLMProvider,
    ProviderNotFoundError,
    get_provider,
    load_provider_registry,
)
from .policies import (  # noqa: F401
    ARGUMENT_SCORING,
    MODERATION,
    LLMPolicy,
    PolicyNotFoundError,
    load_policies,
)
from .router import (  # noqa: F401
    ProviderRouter,
    ProviderSelection,
)
from .telemetry import (  # noqa: F401
    ProviderMetrics,
    TelemetryStore,
    get_telemetry_store,
)
from .classifier import (  # noqa: F401
    ClassifierError,
    PolicyRoutedClassifier,
    parse_json_object,
)

__all__ = [
    "LLMProvider",
    "ProviderNotFoundError",
    "get_provider",
    "load_provider_registry",
    "ARGUMENT_SCORING",
    "MODERATION",
    "LLMPolicy",
    "PolicyNotFoundError",
    "load_policies",
    "ProviderRouter",
    "ProviderSelection",
    "ProviderMetrics",
    "TelemetryStore",
    "get_telemetry_store",
    "ClassifierError",
    "PolicyRoutedClassifier",
    "parse_json_object",
]

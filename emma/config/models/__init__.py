"""Configuration section models."""

from emma.config.models.observability import LoggingConfig, MetricsConfig, ObservabilityConfig
from emma.config.models.providers import LLMProviderConfig, ProvidersConfig
from emma.config.models.relevance import (
    ActionRelevanceConfig,
    RelevanceConfig,
    UserOverrideMode,
)

__all__ = [
    "ActionRelevanceConfig",
    "LLMProviderConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "ProvidersConfig",
    "RelevanceConfig",
    "UserOverrideMode",
]

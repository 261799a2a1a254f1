"""Unit tests for configuration section models."""

import pytest
from pydantic import ValidationError

from emma.config.models import (
    LLMProviderConfig,
    LoggingConfig,
    MetricsConfig,
    RelevanceConfig,
)


class TestRelevanceConfig:
    def test_defaults(self) -> None:
        config = RelevanceConfig()
        assert config.batch_concurrency == 5
        assert config.audit_capacity == 10_000
        assert config.alternative_delay_minutes == 60
        assert config.policy.enable_bulk_approval is True

    @pytest.mark.parametrize("field", ["batch_concurrency", "audit_capacity"])
    def test_sizes_must_be_positive(self, field: str) -> None:
        with pytest.raises(ValidationError):
            RelevanceConfig(**{field: 0})

    def test_policy_from_mapping(self) -> None:
        config = RelevanceConfig(policy={"never_require_approval_actions": ["newsletter"]})
        assert config.policy.never_require_approval_actions == frozenset({"newsletter"})


class TestProviderConfig:
    def test_temperature_bounds(self) -> None:
        with pytest.raises(ValidationError):
            LLMProviderConfig(temperature=3.0)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            LLMProviderConfig(timeout_seconds=0)


class TestObservabilityConfig:
    def test_rejects_unknown_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_port_range(self) -> None:
        with pytest.raises(ValidationError):
            MetricsConfig(port=70000)

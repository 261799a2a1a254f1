"""Shared test fixtures for the EMMA test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog

from emma.config.models.relevance import ActionRelevanceConfig
from emma.providers.llm import MockLLMJudge
from emma.relevance.sources import InMemoryContextSource, StaticPromptSource
from emma.relevance.validator import ActionRelevanceValidator
from tests.factories import FrozenClock


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"EMMA_DEBUG": "true"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test.

    This ensures test isolation for configuration tests.
    """
    from emma.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clear_log_context() -> Generator[None, None, None]:
    """Drop structlog context and configuration left by a previous test."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def context_source() -> InMemoryContextSource:
    return InMemoryContextSource()


@pytest.fixture
def prompt_source() -> StaticPromptSource:
    return StaticPromptSource()


@pytest.fixture
def llm_judge() -> MockLLMJudge:
    """Judge that answers 'relevant, fully confident' by default."""
    return MockLLMJudge(
        responses=['{"isRelevant": true, "confidenceScore": 1.0, "reason": "Still appropriate"}']
    )


@pytest.fixture
def validator(
    context_source: InMemoryContextSource,
    prompt_source: StaticPromptSource,
    llm_judge: MockLLMJudge,
    clock: FrozenClock,
) -> ActionRelevanceValidator:
    return ActionRelevanceValidator(
        context_source=context_source,
        llm_judge=llm_judge,
        prompt_source=prompt_source,
        config=ActionRelevanceConfig(),
        clock=clock,
    )

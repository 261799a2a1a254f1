"""Tests for validator bootstrap."""

from datetime import timedelta

import pytest

from emma.bootstrap import create_validator
from emma.config.settings import Settings
from emma.providers.llm import AuthenticationError, MockLLMJudge
from emma.relevance.sources import InMemoryContextSource
from emma.relevance.validator import ActionRelevanceValidator
from tests.factories import ContactContextFactory, RequestFactory, ScheduledActionFactory


@pytest.fixture
def settings() -> Settings:
    return Settings(
        relevance={
            "batch_concurrency": 3,
            "audit_capacity": 25,
            "policy": {"minimum_confidence_score": 0.4},
        },
        observability={"logging": {"level": "WARNING", "format": "console"}},
    )


class TestCreateValidator:
    def test_uses_settings(self, settings: Settings) -> None:
        validator = create_validator(settings, llm_judge=MockLLMJudge())

        assert isinstance(validator, ActionRelevanceValidator)
        assert validator.get_validation_config().minimum_confidence_score == 0.4
        assert validator.audit_trail.capacity == 25

    def test_requires_api_key_without_judge(
        self, settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("EMMA_LLM_API_KEY", raising=False)

        with pytest.raises(AuthenticationError):
            create_validator(settings)

    def test_builds_http_judge_with_key(
        self, settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EMMA_LLM_API_KEY", "test-key")

        assert isinstance(create_validator(settings), ActionRelevanceValidator)

    @pytest.mark.asyncio
    async def test_validator_is_usable(self, settings: Settings) -> None:
        source = InMemoryContextSource()
        action = ScheduledActionFactory.create(
            action_type="congrats_email", relevance_criteria={"dealStatus": "active"}
        )
        source.put(ContactContextFactory.for_action(action, additional_data={"dealStatus": "active"}))
        validator = create_validator(
            settings, context_source=source, llm_judge=MockLLMJudge(), configure_logging=False
        )

        result = await validator.validate_action_relevance(RequestFactory.create(action=action))
        (alternative,) = await validator.suggest_alternative_actions(
            action, ContactContextFactory.for_action(action)
        )

        assert result.is_relevant is True
        assert alternative.execute_at - alternative.scheduled_at >= timedelta(minutes=59)

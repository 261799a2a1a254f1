"""Tests for batch relevance validation."""

import asyncio

import pytest

from emma.config.models.relevance import ActionRelevanceConfig
from emma.providers.llm import MockLLMJudge
from emma.relevance.models import ContactContext
from emma.relevance.sources import InMemoryContextSource, StaticPromptSource
from emma.relevance.validator import ActionRelevanceValidator
from tests.factories import ContactContextFactory, RequestFactory, ScheduledActionFactory


class ConcurrencyTrackingSource(InMemoryContextSource):
    """Context source that records how many fetches overlap."""

    def __init__(self, delay: float = 0.01) -> None:
        super().__init__()
        self.delay = delay
        self.in_flight = 0
        self.peak = 0

    async def fetch(self, contact_id, organization_id, requesting_agent_id, trace_id) -> ContactContext:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return await super().fetch(contact_id, organization_id, requesting_agent_id, trace_id)
        finally:
            self.in_flight -= 1


@pytest.fixture
def tracking_source() -> ConcurrencyTrackingSource:
    return ConcurrencyTrackingSource()


@pytest.fixture
def batch_validator(tracking_source: ConcurrencyTrackingSource) -> ActionRelevanceValidator:
    return ActionRelevanceValidator(
        context_source=tracking_source,
        llm_judge=MockLLMJudge(),
        prompt_source=StaticPromptSource(),
        config=ActionRelevanceConfig(),
        batch_concurrency=5,
    )


def stored_requests(source: InMemoryContextSource, count: int, **kwargs):
    requests = []
    for _ in range(count):
        action = ScheduledActionFactory.create(relevance_criteria={"dealStatus": "active"})
        source.put(
            ContactContextFactory.for_action(action, additional_data={"dealStatus": "active"})
        )
        requests.append(RequestFactory.create(action=action, **kwargs))
    return requests


class TestBatchValidation:
    @pytest.mark.asyncio
    async def test_empty_batch(self, batch_validator: ActionRelevanceValidator) -> None:
        assert await batch_validator.validate_batch_action_relevance([]) == []

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(
        self,
        batch_validator: ActionRelevanceValidator,
        tracking_source: ConcurrencyTrackingSource,
    ) -> None:
        requests = stored_requests(tracking_source, 50)

        results = await batch_validator.validate_batch_action_relevance(requests)

        assert len(results) == 50
        assert all(result.is_relevant for result in results)
        assert tracking_source.peak <= 5
        assert tracking_source.peak > 1

    @pytest.mark.asyncio
    async def test_results_follow_input_order(
        self,
        batch_validator: ActionRelevanceValidator,
        tracking_source: ConcurrencyTrackingSource,
    ) -> None:
        requests = stored_requests(tracking_source, 12)

        results = await batch_validator.validate_batch_action_relevance(requests)

        assert [r.action_id for r in results] == [req.action.id for req in requests]

    @pytest.mark.asyncio
    async def test_requests_share_batch_trace_id(
        self,
        batch_validator: ActionRelevanceValidator,
        tracking_source: ConcurrencyTrackingSource,
    ) -> None:
        requests = stored_requests(tracking_source, 3)
        requests[0] = requests[0].model_copy(update={"trace_id": "batch-7"})

        results = await batch_validator.validate_batch_action_relevance(requests)

        assert {r.trace_id for r in results} == {"batch-7"}

    @pytest.mark.asyncio
    async def test_generated_batch_trace_id(
        self,
        batch_validator: ActionRelevanceValidator,
        tracking_source: ConcurrencyTrackingSource,
    ) -> None:
        requests = stored_requests(tracking_source, 4)

        results = await batch_validator.validate_batch_action_relevance(requests)

        trace_ids = {r.trace_id for r in results}
        assert len(trace_ids) == 1
        assert None not in trace_ids

    @pytest.mark.asyncio
    async def test_own_trace_id_is_kept(
        self,
        batch_validator: ActionRelevanceValidator,
        tracking_source: ConcurrencyTrackingSource,
    ) -> None:
        requests = stored_requests(tracking_source, 2)
        requests[1] = requests[1].model_copy(update={"trace_id": "own"})

        results = await batch_validator.validate_batch_action_relevance(requests)

        assert results[1].trace_id == "own"
        assert results[0].trace_id != "own"

    @pytest.mark.asyncio
    async def test_one_failure_does_not_sink_the_batch(
        self,
        batch_validator: ActionRelevanceValidator,
        tracking_source: ConcurrencyTrackingSource,
    ) -> None:
        requests = stored_requests(tracking_source, 3)
        requests.insert(1, RequestFactory.create())

        results = await batch_validator.validate_batch_action_relevance(requests)

        assert [r.is_relevant for r in results] == [True, False, True, True]
        assert results[1].validation_method.value == "error"

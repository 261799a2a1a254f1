"""Tests for RuleBasedRelevanceEngine."""

from datetime import timedelta

import pytest

from emma.relevance.criteria import Criterion, CriterionEvaluator
from emma.relevance.models import ContactContext, ValidationMethod
from emma.relevance.rule_engine import RuleBasedRelevanceEngine
from tests.factories import ContactContextFactory, FrozenClock


class ScriptedEvaluator(CriterionEvaluator):
    """Fails every criterion whose expected value is "fail"."""

    def evaluate(self, criterion: Criterion, context: ContactContext, trace_id: str) -> bool:
        return criterion.expected != "fail"


@pytest.fixture
def engine(clock: FrozenClock) -> RuleBasedRelevanceEngine:
    return RuleBasedRelevanceEngine(CriterionEvaluator(clock=clock))


class TestRuleBasedRelevanceEngine:
    """Tests for criteria scoring."""

    def test_empty_criteria_is_vacuously_relevant(self, engine: RuleBasedRelevanceEngine) -> None:
        context = ContactContextFactory.create()
        result = engine.evaluate({}, context, "trace-1")

        assert result.is_relevant is True
        assert result.confidence_score == 1.0
        assert result.failed_criteria == []
        assert result.validation_method == ValidationMethod.RULE_BASED

    def test_all_pass(self, engine: RuleBasedRelevanceEngine) -> None:
        context = ContactContextFactory.create(
            additional_data={"dealStatus": "Active", "engagementLevel": "high"}
        )
        result = engine.evaluate(
            {"dealStatus": "active", "contactEngagement": "HIGH"}, context, "trace-1"
        )

        assert result.is_relevant is True
        assert result.confidence_score == 1.0
        assert result.reason == "All relevance criteria passed"

    def test_single_stale_interaction_scores_zero(
        self, engine: RuleBasedRelevanceEngine, clock: FrozenClock
    ) -> None:
        context = ContactContextFactory.create(last_interaction_date=clock.now - timedelta(days=10))
        result = engine.evaluate({"lastInteractionAge": 7}, context, "trace-1")

        assert result.is_relevant is False
        assert result.confidence_score == 0.0
        assert result.failed_criteria == ["lastInteractionAge"]
        assert "lastInteractionAge" in result.reason

    @pytest.mark.parametrize(
        ("failing", "total", "expected"),
        [(1, 4, 0.75), (2, 4, 0.5), (3, 4, 0.25), (4, 4, 0.0), (1, 3, 2 / 3)],
    )
    def test_confidence_degrades_linearly(self, failing: int, total: int, expected: float) -> None:
        engine = RuleBasedRelevanceEngine(ScriptedEvaluator())
        criteria = {f"c{i}": "fail" if i < failing else "pass" for i in range(total)}

        result = engine.evaluate(criteria, ContactContextFactory.create(), "trace-1")

        assert result.confidence_score == pytest.approx(expected)
        assert len(result.failed_criteria) == failing
        assert result.is_relevant is False

    def test_reason_lists_failed_criteria_in_order(
        self, engine: RuleBasedRelevanceEngine, clock: FrozenClock
    ) -> None:
        context = ContactContextFactory.create(
            last_interaction_date=clock.now - timedelta(days=30),
            additional_data={"dealStatus": "closed", "engagementLevel": "low"},
        )
        result = engine.evaluate(
            {"dealStatus": "active", "contactEngagement": "low", "lastInteractionAge": 7},
            context,
            "trace-1",
        )

        assert result.failed_criteria == ["dealStatus", "lastInteractionAge"]
        assert result.reason == "Failed criteria: dealStatus, lastInteractionAge"
        assert result.confidence_score == pytest.approx(1 / 3)

    def test_context_data_records_contact_and_criteria(
        self, engine: RuleBasedRelevanceEngine
    ) -> None:
        context = ContactContextFactory.create()
        result = engine.evaluate({"custom": 1}, context, "trace-1")

        assert result.context_data["contactId"] == str(context.contact_id)
        assert result.context_data["evaluatedCriteria"] == ["custom"]
        assert result.trace_id == "trace-1"

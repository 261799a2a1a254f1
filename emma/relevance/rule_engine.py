"""Deterministic criteria-based relevance evaluation."""

from collections.abc import Mapping
from typing import Any

from emma.observability.logging import get_logger
from emma.relevance.criteria import CriterionEvaluator, parse_criteria
from emma.relevance.models import (
    ActionRelevanceResult,
    ContactContext,
    ValidationMethod,
)

logger = get_logger(__name__)

ALL_PASSED_REASON = "All relevance criteria passed"


class RuleBasedRelevanceEngine:
    """Evaluate a criteria map and score the outcome.

    Confidence degrades linearly with the share of failed criteria:
    max(0, 1 - failed / total). An empty map is vacuously relevant.
    """

    def __init__(self, evaluator: CriterionEvaluator | None = None) -> None:
        self._evaluator = evaluator or CriterionEvaluator()

    def evaluate(
        self,
        criteria: Mapping[str, Any] | None,
        context: ContactContext,
        trace_id: str,
    ) -> ActionRelevanceResult:
        """Evaluate every criterion and build a rule-based result."""
        parsed = parse_criteria(criteria)
        contact_id = str(context.contact_id) if context.contact_id else None

        if not parsed:
            return ActionRelevanceResult(
                is_relevant=True,
                confidence_score=1.0,
                reason=ALL_PASSED_REASON,
                validation_method=ValidationMethod.RULE_BASED,
                trace_id=trace_id,
                context_data={"contactId": contact_id, "evaluatedCriteria": []},
            )

        failed = [
            criterion.name
            for criterion in parsed
            if not self._evaluator.evaluate(criterion, context, trace_id)
        ]
        total = len(parsed)
        confidence = max(0.0, 1.0 - len(failed) / total)

        logger.debug(
            "criteria_evaluated",
            total=total,
            failed=len(failed),
            confidence=confidence,
            trace_id=trace_id,
        )

        return ActionRelevanceResult(
            is_relevant=not failed,
            confidence_score=confidence,
            reason=f"Failed criteria: {', '.join(failed)}" if failed else ALL_PASSED_REASON,
            failed_criteria=failed,
            validation_method=ValidationMethod.RULE_BASED,
            trace_id=trace_id,
            context_data={
                "contactId": contact_id,
                "evaluatedCriteria": [criterion.name for criterion in parsed],
            },
        )

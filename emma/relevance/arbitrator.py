"""Merge policy between rule-based and LLM results."""

from emma.observability.logging import get_logger
from emma.relevance.models import ActionRelevanceResult

logger = get_logger(__name__)


class RelevanceArbitrator:
    """Pick between a rule-based result and an LLM result.

    The LLM result wins only when it is strictly more confident; on a tie or
    lower LLM confidence the rule-based result is returned unchanged (same
    object, reason and failed criteria intact). No blending.
    """

    def merge(
        self,
        rule_result: ActionRelevanceResult,
        llm_result: ActionRelevanceResult,
    ) -> ActionRelevanceResult:
        if llm_result.confidence_score > rule_result.confidence_score:
            logger.debug(
                "llm_result_preferred",
                rule_confidence=rule_result.confidence_score,
                llm_confidence=llm_result.confidence_score,
            )
            return llm_result
        return rule_result

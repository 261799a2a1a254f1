"""LLM-based relevance judgment.

Renders the validation prompt, asks the LLM judge, and validates the JSON
answer against LLMRelevanceJudgment. Every failure becomes an llm_error
result; nothing propagates to the caller.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError

from emma.config.models.relevance import ActionRelevanceConfig
from emma.observability.logging import get_logger
from emma.observability.metrics import LLM_JUDGE_CALLS
from emma.providers.llm import LLMJudge
from emma.relevance.calls import call_with_timeout
from emma.relevance.models import (
    LLM_CHECKER_NAME,
    ActionRelevanceResult,
    ContactContext,
    LLMRelevanceJudgment,
    ScheduledAction,
    ValidationMethod,
)
from emma.relevance.overrides import serialize_for_llm_prompt
from emma.relevance.sources import ACTION_RELEVANCE_ROLE, PromptSource

logger = get_logger(__name__)

PARSE_FAILURE_REASON = "Failed to parse LLM response"
DEFAULT_JUDGMENT_REASON = "LLM validation"
PROMPT_PREVIEW_LENGTH = 500


def strip_code_fences(content: str) -> str:
    """Extract the body of a markdown code block, if the content has one."""
    content = content.strip()
    if "```json" in content:
        start = content.find("```json") + 7
        end = content.find("```", start)
        if end > start:
            return content[start:end].strip()
    elif "```" in content:
        start = content.find("```") + 3
        end = content.find("```", start)
        if end > start:
            return content[start:end].strip()
    return content


class LLMRelevanceEngine:
    """Ask an LLM judge whether a scheduled action is still relevant."""

    def __init__(self, llm_judge: LLMJudge, prompt_source: PromptSource) -> None:
        self._llm_judge = llm_judge
        self._prompt_source = prompt_source

        template_dir = Path(__file__).parent / "prompts"
        self._env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._template = self._env.get_template("validate_relevance.jinja2")

    def build_prompt(
        self,
        action: ScheduledAction,
        context: ContactContext,
        user_overrides: Mapping[str, Any] | None = None,
    ) -> str:
        """Render the user prompt for one action."""
        return self._template.render(
            action=action,
            criteria_json=json.dumps(action.relevance_criteria, default=str),
            context_json=json.dumps(context.model_dump(mode="json"), indent=2),
            overrides_section=serialize_for_llm_prompt(user_overrides),
        )

    async def evaluate(
        self,
        action: ScheduledAction,
        context: ContactContext,
        config: ActionRelevanceConfig,
        trace_id: str,
        user_overrides: Mapping[str, Any] | None = None,
    ) -> ActionRelevanceResult:
        """Judge one action.

        Args:
            action: Action under validation
            context: Current contact context
            config: Policy snapshot (timeout and fail-open verdict)
            trace_id: Correlation id
            user_overrides: Preferences included in the prompt

        Returns:
            An llm result, or an llm_error result on call or parse failure
        """
        logger.debug("llm_validation_started", action_id=action.id, trace_id=trace_id)

        try:
            system_prompt = await call_with_timeout(
                self._prompt_source.get_system_prompt(ACTION_RELEVANCE_ROLE, None),
                config.default_timeout_seconds,
                "system prompt lookup",
            )
            user_prompt = self.build_prompt(action, context, user_overrides)
            logger.debug(
                "llm_prompt_preview",
                preview=user_prompt[:PROMPT_PREVIEW_LENGTH],
                trace_id=trace_id,
            )
            response = await call_with_timeout(
                self._llm_judge.complete_agent_request(system_prompt, user_prompt, trace_id),
                config.default_timeout_seconds,
                "LLM judge call",
            )
        except Exception as exc:  # noqa: BLE001
            LLM_JUDGE_CALLS.labels(purpose="relevance", status="error").inc()
            logger.error(
                "llm_validation_error",
                action_id=action.id,
                error=str(exc),
                error_type=type(exc).__name__,
                trace_id=trace_id,
            )
            return ActionRelevanceResult(
                action_id=action.id,
                is_relevant=config.fail_open,
                confidence_score=0.0,
                reason=f"LLM validation failed: {exc}",
                validation_method=ValidationMethod.LLM_ERROR,
                checked_by=LLM_CHECKER_NAME,
                trace_id=trace_id,
            )

        result = self._parse_judgment(response.content, action.id, trace_id)
        logger.debug(
            "llm_validation_completed",
            confidence=result.confidence_score,
            validation_method=result.validation_method.value,
            model=response.model,
            trace_id=trace_id,
        )
        return result

    def _parse_judgment(self, content: str, action_id: str, trace_id: str) -> ActionRelevanceResult:
        """Validate the LLM answer into a result."""
        try:
            judgment = LLMRelevanceJudgment.model_validate_json(strip_code_fences(content or ""))
        except ValidationError as exc:
            LLM_JUDGE_CALLS.labels(purpose="relevance", status="parse_error").inc()
            logger.error(
                "llm_response_parse_error",
                error=str(exc),
                error_count=exc.error_count(),
                trace_id=trace_id,
            )
            return ActionRelevanceResult(
                action_id=action_id,
                is_relevant=False,
                confidence_score=0.0,
                reason=PARSE_FAILURE_REASON,
                validation_method=ValidationMethod.LLM_ERROR,
                checked_by=LLM_CHECKER_NAME,
                trace_id=trace_id,
            )

        LLM_JUDGE_CALLS.labels(purpose="relevance", status="success").inc()
        return ActionRelevanceResult(
            action_id=action_id,
            is_relevant=judgment.is_relevant,
            confidence_score=judgment.confidence_score,
            reason=judgment.reason.strip() or DEFAULT_JUDGMENT_REASON,
            validation_method=ValidationMethod.LLM,
            checked_by=LLM_CHECKER_NAME,
            trace_id=trace_id,
            recommended_action=judgment.recommended_action,
            alternative_actions=judgment.alternative_actions,
        )

"""Action relevance validation orchestrator.

Decides at execution time whether a previously scheduled action should
still fire. Flow per action:

1. Use the supplied contact context or fetch a fresh one
2. Evaluate the action's relevance criteria (rule-based)
3. If allowed and the rule-based confidence is low, consult the LLM judge
   and keep whichever result is strictly more confident
4. Stamp the result, record it in the audit trail, return it

Validation is a total function: any failure produces a result carrying the
configured fail-safe verdict instead of an exception.
"""

import asyncio
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from pydantic import ValidationError
from structlog.contextvars import bound_contextvars

from emma.audit import AuditTrail
from emma.config.models.relevance import ActionRelevanceConfig
from emma.observability.logging import get_logger
from emma.observability.metrics import (
    RELEVANCE_VALIDATION_LATENCY,
    RELEVANCE_VALIDATIONS,
    outcome_label,
)
from emma.providers.llm import LLMJudge
from emma.relevance.alternatives import DEFAULT_ALTERNATIVE_DELAY, AlternativeActionSuggester
from emma.relevance.approval import ApprovalManager
from emma.relevance.arbitrator import RelevanceArbitrator
from emma.relevance.calls import call_with_timeout
from emma.relevance.criteria import CriterionEvaluator
from emma.relevance.llm_engine import LLMRelevanceEngine
from emma.relevance.models import (
    VALIDATOR_NAME,
    ActionRelevanceRequest,
    ActionRelevanceResult,
    ContactContext,
    ScheduledAction,
    ValidationMethod,
    utc_now,
)
from emma.relevance.overrides import serialize_for_audit_log
from emma.relevance.rule_engine import RuleBasedRelevanceEngine
from emma.relevance.sources import ContextSource, PromptSource

logger = get_logger(__name__)

DEFAULT_BATCH_CONCURRENCY = 5


class ActionRelevanceValidator:
    """Validate scheduled actions against the contact's current situation."""

    def __init__(
        self,
        context_source: ContextSource,
        llm_judge: LLMJudge,
        prompt_source: PromptSource,
        config: ActionRelevanceConfig | None = None,
        batch_concurrency: int = DEFAULT_BATCH_CONCURRENCY,
        audit_capacity: int = 10_000,
        alternative_delay: timedelta = DEFAULT_ALTERNATIVE_DELAY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the validator.

        Args:
            context_source: Supplies fresh contact context
            llm_judge: LLM judge for uncertain results and approval decisions
            prompt_source: Supplies the validator's system prompt
            config: Initial policy (defaults when omitted)
            batch_concurrency: Max in-flight validations per batch
            audit_capacity: Audit trail ring buffer size
            alternative_delay: Delay before suggested alternatives execute
            clock: Source of "now"
        """
        if batch_concurrency < 1:
            raise ValueError("batch_concurrency must be at least 1")

        self._context_source = context_source
        self._config = config or ActionRelevanceConfig()
        self._config_lock = threading.Lock()
        self._batch_concurrency = batch_concurrency

        self._rule_engine = RuleBasedRelevanceEngine(CriterionEvaluator(clock=clock))
        self._llm_engine = LLMRelevanceEngine(llm_judge, prompt_source)
        self._arbitrator = RelevanceArbitrator()
        self._suggester = AlternativeActionSuggester(alternative_delay, clock)
        self._audit = AuditTrail(audit_capacity)
        self._approvals = ApprovalManager(
            context_source=context_source,
            llm_judge=llm_judge,
            suggester=self._suggester,
            config_provider=self.get_validation_config,
            clock=clock,
        )

    @property
    def approvals(self) -> ApprovalManager:
        """User approval workflow sharing this validator's policy."""
        return self._approvals

    @property
    def audit_trail(self) -> AuditTrail:
        return self._audit

    async def validate_action_relevance(
        self, request: ActionRelevanceRequest
    ) -> ActionRelevanceResult:
        """Validate one action. Never raises."""
        config = self._config
        action = request.action
        trace_id = request.trace_id or action.trace_id or str(uuid4())
        start_time = time.perf_counter()

        with bound_contextvars(trace_id=trace_id, action_id=action.id):
            logger.info(
                "relevance_validation_started",
                action_type=action.action_type,
                contact_id=str(action.contact_id),
                use_llm_validation=request.use_llm_validation,
                user_overrides=serialize_for_audit_log(request.user_overrides),
            )

            try:
                result = await self._validate(request, config, trace_id)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "relevance_validation_error",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                result = self._error_result(action, config, trace_id, exc)
            else:
                if config.enable_audit_logging:
                    self._audit.record(result)
                logger.info(
                    "relevance_validation_completed",
                    is_relevant=result.is_relevant,
                    confidence=result.confidence_score,
                    validation_method=result.validation_method.value,
                )

        method = result.validation_method.value
        RELEVANCE_VALIDATIONS.labels(method=method, outcome=outcome_label(result.is_relevant)).inc()
        RELEVANCE_VALIDATION_LATENCY.labels(method=method).observe(time.perf_counter() - start_time)
        return result

    async def _validate(
        self,
        request: ActionRelevanceRequest,
        config: ActionRelevanceConfig,
        trace_id: str,
    ) -> ActionRelevanceResult:
        action = request.action
        context = request.current_context
        if context is None:
            logger.debug("fetching_contact_context")
            context = await call_with_timeout(
                self._context_source.fetch(
                    action.contact_id,
                    action.organization_id,
                    action.scheduled_by_agent_id,
                    trace_id,
                ),
                config.default_timeout_seconds,
                "context fetch",
            )

        result = self._rule_engine.evaluate(action.relevance_criteria, context, trace_id)

        if (
            request.use_llm_validation
            and config.enable_llm_validation
            and result.confidence_score < config.minimum_confidence_score
        ):
            logger.debug("llm_validation_requested", rule_confidence=result.confidence_score)
            llm_result = await self._llm_engine.evaluate(
                action, context, config, trace_id, request.user_overrides
            )
            merged = self._arbitrator.merge(result, llm_result)
            method = ValidationMethod.LLM if merged is llm_result else ValidationMethod.RULE_BASED_WITH_LLM
            result = merged.model_copy(update={"validation_method": method})

        return self._stamp(result, action, trace_id)

    def _stamp(
        self,
        result: ActionRelevanceResult,
        action: ScheduledAction,
        trace_id: str,
    ) -> ActionRelevanceResult:
        context_data = dict(result.context_data)
        context_data["contactId"] = str(action.contact_id)
        context_data["actionType"] = action.action_type
        return result.model_copy(
            update={
                "action_id": action.id,
                "trace_id": trace_id,
                "checked_by": VALIDATOR_NAME,
                "context_data": context_data,
            }
        )

    def _error_result(
        self,
        action: ScheduledAction,
        config: ActionRelevanceConfig,
        trace_id: str,
        exc: BaseException,
    ) -> ActionRelevanceResult:
        return ActionRelevanceResult(
            action_id=action.id,
            is_relevant=config.fail_open,
            confidence_score=0.0,
            reason=f"Validation failed: {exc}",
            validation_method=ValidationMethod.ERROR,
            trace_id=trace_id,
            context_data={
                "contactId": str(action.contact_id),
                "actionType": action.action_type,
            },
        )

    async def validate_batch_action_relevance(
        self, requests: Sequence[ActionRelevanceRequest]
    ) -> list[ActionRelevanceResult]:
        """Validate many actions with bounded concurrency.

        Results are returned in input order. Requests without a trace id
        share the batch trace id.
        """
        if not requests:
            return []

        batch_trace_id = requests[0].trace_id or str(uuid4())
        semaphore = asyncio.Semaphore(self._batch_concurrency)

        logger.info(
            "batch_validation_started",
            count=len(requests),
            concurrency=self._batch_concurrency,
            trace_id=batch_trace_id,
        )

        async def run(request: ActionRelevanceRequest) -> ActionRelevanceResult:
            if request.trace_id is None:
                request = request.model_copy(update={"trace_id": batch_trace_id})
            async with semaphore:
                return await self.validate_action_relevance(request)

        results = list(await asyncio.gather(*(run(request) for request in requests)))

        logger.info(
            "batch_validation_completed",
            relevant=sum(1 for r in results if r.is_relevant),
            total=len(results),
            trace_id=batch_trace_id,
        )
        return results

    async def is_action_still_relevant(
        self,
        action: ScheduledAction,
        contact_id: UUID,
        organization_id: UUID,
        trace_id: str | None = None,
    ) -> bool:
        """Quick yes/no check with a freshly fetched context."""
        trace_id = trace_id or str(uuid4())
        if action.contact_id != contact_id or action.organization_id != organization_id:
            logger.warning(
                "relevance_check_target_mismatch",
                action_id=action.id,
                contact_id=str(contact_id),
                organization_id=str(organization_id),
                trace_id=trace_id,
            )

        try:
            request = ActionRelevanceRequest(action=action, trace_id=trace_id)
            result = await self.validate_action_relevance(request)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "relevance_check_error",
                action_id=action.id,
                error=str(exc),
                trace_id=trace_id,
            )
            return self._config.fail_open
        return result.is_relevant

    async def evaluate_relevance_criteria(
        self,
        criteria: Mapping[str, Any] | None,
        context: ContactContext,
        trace_id: str | None = None,
    ) -> ActionRelevanceResult:
        """Rule-based evaluation only."""
        return self._rule_engine.evaluate(criteria, context, trace_id or str(uuid4()))

    async def validate_with_llm(
        self,
        action: ScheduledAction,
        context: ContactContext,
        trace_id: str | None = None,
        user_overrides: Mapping[str, Any] | None = None,
    ) -> ActionRelevanceResult:
        """LLM evaluation only. Failures come back as llm_error results."""
        return await self._llm_engine.evaluate(
            action, context, self._config, trace_id or str(uuid4()), user_overrides
        )

    async def suggest_alternative_actions(
        self,
        original_action: ScheduledAction,
        context: ContactContext,
        trace_id: str | None = None,
    ) -> list[ScheduledAction]:
        trace_id = trace_id or str(uuid4())
        try:
            return self._suggester.suggest(original_action, context, trace_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("alternative_actions_error", error=str(exc), trace_id=trace_id)
            return []

    def get_validation_config(self) -> ActionRelevanceConfig:
        """Return the current policy snapshot."""
        return self._config

    async def update_validation_config(
        self, config: ActionRelevanceConfig | Mapping[str, Any]
    ) -> bool:
        """Replace the policy as a whole.

        Returns:
            False if a mapping fails validation (the current policy stays)
        """
        if not isinstance(config, ActionRelevanceConfig):
            try:
                config = ActionRelevanceConfig.model_validate(config)
            except ValidationError as exc:
                logger.error("validation_config_rejected", error=str(exc))
                return False

        with self._config_lock:
            self._config = config
        logger.info(
            "validation_config_updated",
            enable_llm_validation=config.enable_llm_validation,
            minimum_confidence_score=config.minimum_confidence_score,
            default_action_on_uncertainty=config.default_action_on_uncertainty,
        )
        return True

    async def get_validation_audit_log(
        self,
        contact_id: UUID | str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        action_type: str | None = None,
    ) -> list[ActionRelevanceResult]:
        """Query recorded results, newest first."""
        return self._audit.query(
            contact_id=contact_id,
            start_date=start_date,
            end_date=end_date,
            action_type=action_type,
        )

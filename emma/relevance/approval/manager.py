"""User approval workflow for scheduled actions.

Decides whether a validated action needs a human sign-off, keeps pending
approval requests in memory, and turns user decisions into the action to
execute (or None). Expired requests are removed by cleanup_expired_approvals,
which the host calls on its own schedule.
"""

import threading
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import uuid4

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError

from emma.config.models.relevance import ActionRelevanceConfig, UserOverrideMode
from emma.observability.logging import get_logger
from emma.observability.metrics import LLM_JUDGE_CALLS, PENDING_APPROVALS
from emma.providers.llm import LLMJudge
from emma.relevance.alternatives import AlternativeActionSuggester
from emma.relevance.approval.models import (
    ApprovalDecision,
    ApprovalRecommendation,
    ApprovalStatus,
    UserApprovalRequest,
    UserApprovalResponse,
)
from emma.relevance.calls import call_with_timeout
from emma.relevance.llm_engine import strip_code_fences
from emma.relevance.models import (
    ActionRelevanceResult,
    ContactContext,
    ScheduledAction,
    UrgencyLevel,
    utc_now,
)
from emma.relevance.sources import ContextSource

logger = get_logger(__name__)

DEFER_DELAY = timedelta(hours=1)
SIMILAR_ACTION_WINDOW = timedelta(hours=24)

_PROMPT_DIR = Path(__file__).parent / "prompts"


class ApprovalManager:
    """In-memory approval request store and decision logic."""

    def __init__(
        self,
        context_source: ContextSource,
        llm_judge: LLMJudge,
        suggester: AlternativeActionSuggester,
        config_provider: Callable[[], ActionRelevanceConfig],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the approval manager.

        Args:
            context_source: Supplies fresh contact context
            llm_judge: Judge consulted in llm_decision mode
            suggester: Produces alternatives attached to new requests
            config_provider: Returns the current policy snapshot
            clock: Source of "now"
        """
        self._context_source = context_source
        self._llm_judge = llm_judge
        self._suggester = suggester
        self._config_provider = config_provider
        self._clock = clock
        self._pending: dict[str, UserApprovalRequest] = {}
        self._lock = threading.Lock()

        self._env = Environment(
            loader=FileSystemLoader(_PROMPT_DIR),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._template = self._env.get_template("approval_decision.jinja2")
        self._system_prompt = (_PROMPT_DIR / "approval_system.txt").read_text()

    async def requires_user_approval(
        self,
        action: ScheduledAction,
        result: ActionRelevanceResult,
        user_id: str,
        trace_id: str | None = None,
    ) -> bool:
        """Decide whether the action needs a human decision.

        Any error requires approval.
        """
        trace_id = trace_id or str(uuid4())
        config = self._config_provider()

        try:
            if config.override_mode == UserOverrideMode.ALWAYS_ASK:
                return True
            if config.override_mode == UserOverrideMode.NEVER_ASK:
                return False
            if config.override_mode == UserOverrideMode.RISK_BASED:
                return self._risk_based(action, result, config, trace_id)
            if config.override_mode == UserOverrideMode.LLM_DECISION:
                context = await self._fetch_context(action, config, trace_id)
                return await self.llm_recommends_approval(action, result, context, trace_id)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "approval_requirement_error",
                action_id=action.id,
                user_id=user_id,
                error=str(exc),
                trace_id=trace_id,
            )
            return True

        logger.warning(
            "unknown_override_mode",
            mode=str(config.override_mode),
            trace_id=trace_id,
        )
        return True

    def _risk_based(
        self,
        action: ScheduledAction,
        result: ActionRelevanceResult,
        config: ActionRelevanceConfig,
        trace_id: str,
    ) -> bool:
        if action.action_type in config.always_require_approval_actions:
            logger.debug("approval_required_action_type", action_type=action.action_type, trace_id=trace_id)
            return True
        if action.action_type in config.never_require_approval_actions:
            return False
        if result.confidence_score < config.user_approval_threshold:
            logger.debug(
                "approval_required_low_confidence",
                confidence=result.confidence_score,
                threshold=config.user_approval_threshold,
                trace_id=trace_id,
            )
            return True
        return False

    async def llm_recommends_approval(
        self,
        action: ScheduledAction,
        result: ActionRelevanceResult,
        context: ContactContext,
        trace_id: str | None = None,
    ) -> bool:
        """Ask the LLM judge whether approval is needed. Failures require approval."""
        trace_id = trace_id or str(uuid4())
        config = self._config_provider()

        try:
            user_prompt = self._template.render(action=action, result=result, context=context)
            response = await call_with_timeout(
                self._llm_judge.complete_agent_request(self._system_prompt, user_prompt, trace_id),
                config.default_timeout_seconds,
                "LLM approval call",
            )
        except Exception as exc:  # noqa: BLE001
            LLM_JUDGE_CALLS.labels(purpose="approval", status="error").inc()
            logger.error(
                "llm_approval_error",
                action_id=action.id,
                error=str(exc),
                trace_id=trace_id,
            )
            return True

        try:
            recommendation = ApprovalRecommendation.model_validate_json(
                strip_code_fences(response.content or "")
            )
        except ValidationError as exc:
            LLM_JUDGE_CALLS.labels(purpose="approval", status="parse_error").inc()
            logger.error("llm_approval_parse_error", error=str(exc), trace_id=trace_id)
            return True

        LLM_JUDGE_CALLS.labels(purpose="approval", status="success").inc()
        logger.debug(
            "llm_approval_recommendation",
            requires_approval=recommendation.requires_approval,
            reason=recommendation.reason,
            trace_id=trace_id,
        )
        return recommendation.requires_approval

    async def create_approval_request(
        self,
        action: ScheduledAction,
        result: ActionRelevanceResult,
        user_id: str,
        reason: str,
        user_overrides: Mapping[str, Any] | None = None,
        trace_id: str | None = None,
    ) -> UserApprovalRequest:
        """Create and store a pending approval request.

        Raises:
            Exception: Whatever the context source raised while collecting
                alternatives; no request is stored in that case
        """
        trace_id = trace_id or str(uuid4())
        config = self._config_provider()
        now = self._clock()

        try:
            context = await self._fetch_context(action, config, trace_id)
        except Exception as exc:
            logger.error(
                "approval_request_error",
                action_id=action.id,
                error=str(exc),
                trace_id=trace_id,
            )
            raise

        request = UserApprovalRequest(
            action=action,
            relevance_result=result,
            approval_reason=reason,
            user_id=user_id,
            original_user_overrides=dict(user_overrides or {}),
            alternative_actions=self._suggester.suggest(action, context, trace_id),
            requested_at=now,
            expires_at=now + timedelta(minutes=config.user_approval_timeout_minutes),
            trace_id=trace_id,
        )

        with self._lock:
            self._pending[request.request_id] = request
            PENDING_APPROVALS.set(len(self._pending))

        logger.info(
            "approval_request_created",
            request_id=request.request_id,
            action_id=action.id,
            user_id=user_id,
            expires_at=request.expires_at.isoformat(),
            trace_id=trace_id,
        )
        return request

    async def process_approval_response(
        self, response: UserApprovalResponse
    ) -> ScheduledAction | None:
        """Apply a user's decision.

        Returns:
            The action to execute (original, modified or deferred copy), or
            None when rejected, unknown, or on error
        """
        with self._lock:
            request = self._pending.get(response.request_id)
        if request is None:
            logger.warning("approval_request_not_found", request_id=response.request_id)
            return None

        try:
            config = self._config_provider()
            if (
                response.decision == ApprovalDecision.APPROVE
                and response.apply_to_similar_actions
                and config.enable_bulk_approval
            ):
                # Similar requests are matched against the original, so it
                # must still be pending here
                await self.apply_bulk_approval(response, response.user_id)

            with self._lock:
                self._pending.pop(response.request_id, None)
                PENDING_APPROVALS.set(len(self._pending))

            action = request.action
            outcome: ScheduledAction | None = None
            if response.decision == ApprovalDecision.APPROVE:
                request.status = ApprovalStatus.APPROVED
                outcome = action
            elif response.decision == ApprovalDecision.REJECT:
                request.status = ApprovalStatus.REJECTED
            elif response.decision == ApprovalDecision.MODIFY:
                request.status = ApprovalStatus.MODIFIED
                outcome = action
                if response.suggested_modifications:
                    outcome = apply_modifications(action, response.suggested_modifications)
            elif response.decision == ApprovalDecision.DEFER:
                request.status = ApprovalStatus.MODIFIED
                outcome = action.model_copy(update={"execute_at": self._clock() + DEFER_DELAY})
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "approval_response_error",
                request_id=response.request_id,
                error=str(exc),
                trace_id=request.trace_id,
            )
            return None

        logger.info(
            "approval_response_processed",
            request_id=response.request_id,
            decision=response.decision.value,
            action_id=action.id,
            reason=response.reason,
            trace_id=request.trace_id,
        )
        return outcome

    async def get_pending_approvals(
        self, user_id: str, include_expired: bool = False
    ) -> list[UserApprovalRequest]:
        """Return the user's pending requests, oldest first."""
        now = self._clock()
        with self._lock:
            requests = [
                request
                for request in self._pending.values()
                if request.user_id == user_id
                and request.status == ApprovalStatus.PENDING
                and (include_expired or not request.is_expired(now))
            ]
        return sorted(requests, key=lambda r: r.requested_at)

    async def apply_bulk_approval(self, response: UserApprovalResponse, user_id: str) -> int:
        """Apply an approve/reject decision to similar pending requests.

        Similar: same action type and contact, execute_at within 24 hours of
        the original, same user, still pending. The original request itself
        is not counted.

        Returns:
            Number of requests resolved
        """
        if response.decision not in (ApprovalDecision.APPROVE, ApprovalDecision.REJECT):
            return 0
        status = (
            ApprovalStatus.APPROVED
            if response.decision == ApprovalDecision.APPROVE
            else ApprovalStatus.REJECTED
        )

        with self._lock:
            original = self._pending.get(response.request_id)
            if original is None:
                return 0
            similar = [
                request
                for request in self._pending.values()
                if request.user_id == user_id
                and request.request_id != response.request_id
                and request.status == ApprovalStatus.PENDING
                and is_similar_action(request.action, original.action)
            ]
            for request in similar:
                request.status = status
                del self._pending[request.request_id]
            PENDING_APPROVALS.set(len(self._pending))

        logger.info(
            "bulk_approval_applied",
            count=len(similar),
            decision=response.decision.value,
            user_id=user_id,
        )
        return len(similar)

    def cleanup_expired_approvals(self) -> int:
        """Expire and remove requests past their deadline.

        Returns:
            Number of requests removed
        """
        now = self._clock()
        with self._lock:
            expired = [r for r in self._pending.values() if r.is_expired(now)]
            for request in expired:
                request.status = ApprovalStatus.EXPIRED
                del self._pending[request.request_id]
            PENDING_APPROVALS.set(len(self._pending))

        for request in expired:
            logger.warning(
                "approval_request_expired",
                request_id=request.request_id,
                action_type=request.action.action_type,
                trace_id=request.trace_id,
            )
        logger.debug("expired_approvals_cleaned", count=len(expired))
        return len(expired)

    async def _fetch_context(
        self,
        action: ScheduledAction,
        config: ActionRelevanceConfig,
        trace_id: str,
    ) -> ContactContext:
        return await call_with_timeout(
            self._context_source.fetch(
                action.contact_id,
                action.organization_id,
                action.scheduled_by_agent_id,
                trace_id,
            ),
            config.default_timeout_seconds,
            "context fetch",
        )


def is_similar_action(first: ScheduledAction, second: ScheduledAction) -> bool:
    """Same type and contact, executing within 24 hours of each other."""
    return (
        first.action_type == second.action_type
        and first.contact_id == second.contact_id
        and abs(_as_utc(first.execute_at) - _as_utc(second.execute_at)) < SIMILAR_ACTION_WINDOW
    )


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def apply_modifications(
    action: ScheduledAction, modifications: Mapping[str, Any]
) -> ScheduledAction:
    """Return a copy of the action with user modifications applied.

    description, execute_at and priority update those fields (unparseable
    values are ignored); any other key is stored in parameters.
    """
    update: dict[str, Any] = {}
    parameters = dict(action.parameters)

    for key, value in modifications.items():
        field = key.lower().replace("_", "")
        if field == "description":
            if value is not None:
                update["description"] = str(value)
        elif field == "executeat":
            execute_at = _parse_datetime(value)
            if execute_at is not None:
                update["execute_at"] = execute_at
        elif field == "priority":
            priority = _parse_priority(value)
            if priority is not None:
                update["priority"] = priority
        else:
            parameters[key] = value

    update["parameters"] = parameters
    return action.model_copy(update=update)


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _parse_priority(value: Any) -> UrgencyLevel | None:
    if isinstance(value, UrgencyLevel):
        return value
    levels = list(UrgencyLevel)
    if isinstance(value, int) and not isinstance(value, bool):
        return levels[value] if 0 <= value < len(levels) else None
    try:
        return UrgencyLevel(str(value).strip().lower())
    except ValueError:
        return None

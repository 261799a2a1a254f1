"""User approval workflow models."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from emma.relevance.models import ActionRelevanceResult, ScheduledAction, utc_now


class ApprovalStatus(str, Enum):
    """Lifecycle state of an approval request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    MODIFIED = "modified"
    EXPIRED = "expired"


class ApprovalDecision(str, Enum):
    """A user's answer to an approval request."""

    APPROVE = "approve"
    REJECT = "reject"
    MODIFY = "modify"
    DEFER = "defer"


class UserApprovalRequest(BaseModel):
    """A scheduled action awaiting a human decision."""

    request_id: str = Field(default_factory=lambda: str(uuid4()))
    action: ScheduledAction
    relevance_result: ActionRelevanceResult
    approval_reason: str = Field(default="", description="Why approval is needed")
    user_id: str = Field(..., description="User who must decide")
    original_user_overrides: dict[str, Any] = Field(
        default_factory=dict, description="Overrides in force when the request was raised"
    )
    alternative_actions: list[ScheduledAction] = Field(
        default_factory=list, description="Suggested replacements"
    )
    requested_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    status: ApprovalStatus = Field(default=ApprovalStatus.PENDING)
    trace_id: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class UserApprovalResponse(BaseModel):
    """A user's decision on a pending request."""

    request_id: str
    decision: ApprovalDecision
    user_id: str
    reason: str | None = None
    suggested_modifications: dict[str, Any] | None = Field(
        default=None,
        description="For MODIFY: description, execute_at, priority, or parameter values",
    )
    apply_to_similar_actions: bool = Field(
        default=False, description="For APPROVE/REJECT: apply to similar pending requests"
    )
    responded_at: datetime = Field(default_factory=utc_now)


class ApprovalRecommendation(BaseModel):
    """Expected JSON shape of the LLM approval recommendation."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    requires_approval: bool = Field(
        ..., validation_alias=AliasChoices("requiresApproval", "requires_approval")
    )
    reason: str = Field(default="LLM recommendation")

"""Scheduled action and validation request models."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from emma.relevance.models.context import ContactContext
from emma.relevance.models.enums import UrgencyLevel
from emma.relevance.overrides import validate_user_overrides


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class ScheduledAction(BaseModel):
    """An action created by the scheduler and awaiting execution.

    Read-only to the validator. Derived actions (alternatives, user
    modifications, deferrals) are new instances.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid4()), description="Action identifier")
    action_type: str = Field(..., min_length=1, description="Action type tag, e.g. congrats_email")
    description: str = Field(default="", description="Human readable description")
    contact_id: UUID = Field(..., description="Contact the action targets")
    organization_id: UUID = Field(..., description="Owning organization")
    scheduled_by_agent_id: str = Field(..., description="Agent or user that scheduled it")
    scheduled_at: datetime = Field(default_factory=utc_now, description="When it was scheduled")
    execute_at: datetime = Field(..., description="When it is due to execute")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Action parameters")
    relevance_criteria: dict[str, Any] = Field(
        default_factory=dict,
        description="Criterion name -> expected value, evaluated at execution time",
    )
    priority: UrgencyLevel = Field(default=UrgencyLevel.MEDIUM, description="Execution priority")
    trace_id: str | None = Field(default=None, description="Correlation id")


class ActionRelevanceRequest(BaseModel):
    """Request to validate one scheduled action."""

    action: ScheduledAction
    current_context: ContactContext | None = Field(
        default=None, description="Pre-fetched context; fetched when absent"
    )
    use_llm_validation: bool = Field(
        default=False, description="Whether the LLM path may be used"
    )
    user_overrides: dict[str, Any] = Field(
        default_factory=dict, description="User preferences passed to the LLM judge"
    )
    trace_id: str | None = Field(default=None, description="Correlation id")

    @field_validator("user_overrides")
    @classmethod
    def check_user_overrides(cls, value: dict[str, Any]) -> dict[str, Any]:
        valid, issues = validate_user_overrides(value)
        if not valid:
            raise ValueError("; ".join(issues))
        return value

"""Relevance result and LLM judgment models."""

from datetime import UTC, datetime
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from emma.relevance.models.enums import Disposition, ValidationMethod

VALIDATOR_NAME = "ActionRelevanceValidator"
LLM_CHECKER_NAME = f"LLM-{VALIDATOR_NAME}"


class ActionRelevanceResult(BaseModel):
    """Decision artifact for one validation call.

    Immutable once built. It references the action by id only, so audit
    storage never holds scheduler objects.
    """

    model_config = ConfigDict(frozen=True)

    action_id: str = Field(default="", description="Action this result judges")
    is_relevant: bool = Field(..., description="Whether the action should still execute")
    confidence_score: float = Field(..., ge=0.0, le=1.0, description="Confidence in the verdict")
    reason: str = Field(default="", description="Human readable reasoning")
    failed_criteria: list[str] = Field(
        default_factory=list, description="Criteria that failed (rule-based path)"
    )
    validation_method: ValidationMethod = Field(default=ValidationMethod.RULE_BASED)
    checked_by: str = Field(default=VALIDATOR_NAME, description="Component that judged")
    trace_id: str | None = None
    checked_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    context_data: dict[str, Any] = Field(
        default_factory=dict, description="Inputs used (contactId, evaluatedCriteria, ...)"
    )
    recommended_action: Disposition | None = Field(
        default=None, description="LLM path only"
    )
    alternative_actions: list[str] = Field(
        default_factory=list, description="LLM path only"
    )

    @model_validator(mode="after")
    def require_reason_when_rejected(self) -> "ActionRelevanceResult":
        if not self.is_relevant and not self.reason.strip():
            raise ValueError("a not-relevant result must carry a reason")
        return self


class LLMRelevanceJudgment(BaseModel):
    """Expected JSON shape of the LLM relevance judgment."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    is_relevant: bool = Field(..., validation_alias=AliasChoices("isRelevant", "is_relevant"))
    confidence_score: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        validation_alias=AliasChoices("confidenceScore", "confidence_score"),
    )
    reason: str = Field(default="LLM validation")
    recommended_action: Disposition | None = Field(
        default=None,
        validation_alias=AliasChoices("recommendedAction", "recommended_action"),
    )
    alternative_actions: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("alternativeActions", "alternative_actions"),
    )

    @field_validator("recommended_action", mode="before")
    @classmethod
    def normalize_disposition(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("alternative_actions", mode="after")
    @classmethod
    def drop_blank_alternatives(cls, value: list[str]) -> list[str]:
        return [item for item in value if item.strip()]

"""Action relevance validation configuration models."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UncertaintyAction = Literal["proceed", "suppress"]


class UserOverrideMode(str, Enum):
    """How the approval workflow decides whether a human must sign off.

    - ALWAYS_ASK: Every action requires approval
    - NEVER_ASK: No action requires approval
    - RISK_BASED: Action-type lists first, then the confidence threshold
    - LLM_DECISION: Ask the LLM judge
    """

    ALWAYS_ASK = "always_ask"
    NEVER_ASK = "never_ask"
    RISK_BASED = "risk_based"
    LLM_DECISION = "llm_decision"


class ActionRelevanceConfig(BaseModel):
    """Process-wide validation policy.

    Instances are immutable snapshots. The validator swaps the whole object
    on update so concurrent validations never see a half-applied policy.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    enable_llm_validation: bool = Field(
        default=True, description="Allow the LLM path at all"
    )
    minimum_confidence_score: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Rule-based confidence below which the LLM path runs",
    )
    default_action_on_uncertainty: UncertaintyAction = Field(
        default="suppress",
        description="Verdict used when validation itself fails",
    )
    enable_audit_logging: bool = Field(
        default=True, description="Record every result in the audit trail"
    )
    default_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to each context, prompt and LLM call",
    )

    # Approval workflow
    override_mode: UserOverrideMode = Field(
        default=UserOverrideMode.RISK_BASED,
        description="Approval decision mode",
    )
    user_approval_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Risk-based mode: confidence below this requires approval",
    )
    always_require_approval_actions: frozenset[str] = Field(
        default_factory=frozenset,
        description="Action types that always need approval in risk-based mode",
    )
    never_require_approval_actions: frozenset[str] = Field(
        default_factory=frozenset,
        description="Action types that never need approval in risk-based mode",
    )
    user_approval_timeout_minutes: int = Field(
        default=60, ge=1, description="Lifetime of a pending approval request"
    )
    enable_bulk_approval: bool = Field(
        default=True, description="Allow approving similar pending actions at once"
    )

    @property
    def fail_open(self) -> bool:
        """Verdict returned when relevance cannot be determined."""
        return self.default_action_on_uncertainty != "suppress"


class RelevanceConfig(BaseModel):
    """Relevance validator wiring.

    `policy` can be replaced at runtime through the validator; the remaining
    fields size process-lifetime structures and are read once at startup.
    """

    policy: ActionRelevanceConfig = Field(
        default_factory=ActionRelevanceConfig,
        description="Initial validation policy",
    )
    batch_concurrency: int = Field(
        default=5, ge=1, description="Max in-flight validations per batch"
    )
    audit_capacity: int = Field(
        default=10_000, ge=1, description="Audit trail ring buffer size"
    )
    alternative_delay_minutes: int = Field(
        default=60, ge=0, description="Delay before suggested alternatives execute"
    )

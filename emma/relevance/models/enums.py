"""Enums for the relevance validation domain."""

from enum import Enum


class UrgencyLevel(str, Enum):
    """Priority of a scheduled action."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ValidationMethod(str, Enum):
    """Which path produced a relevance result.

    - RULE_BASED: Criteria evaluation only
    - LLM: LLM judgment replaced the rule-based result
    - RULE_BASED_WITH_LLM: LLM consulted but the rule-based result was kept
    - LLM_ERROR: LLM path failed (call or parse)
    - ERROR: Validation itself failed, configured default applied
    """

    RULE_BASED = "rule_based"
    LLM = "llm"
    RULE_BASED_WITH_LLM = "rule_based+llm"
    LLM_ERROR = "llm_error"
    ERROR = "error"


class Disposition(str, Enum):
    """Recommended handling of a stale or irrelevant action."""

    PROCEED = "proceed"
    RESCHEDULE = "reschedule"
    MODIFY = "modify"
    CANCEL = "cancel"

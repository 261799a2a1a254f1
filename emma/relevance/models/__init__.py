"""Relevance validation domain models."""

from emma.config.models.relevance import ActionRelevanceConfig, UserOverrideMode
from emma.relevance.models.action import ActionRelevanceRequest, ScheduledAction, utc_now
from emma.relevance.models.context import ContactContext
from emma.relevance.models.enums import Disposition, UrgencyLevel, ValidationMethod
from emma.relevance.models.result import (
    LLM_CHECKER_NAME,
    VALIDATOR_NAME,
    ActionRelevanceResult,
    LLMRelevanceJudgment,
)

__all__ = [
    "ActionRelevanceConfig",
    "ActionRelevanceRequest",
    "ActionRelevanceResult",
    "ContactContext",
    "Disposition",
    "LLMRelevanceJudgment",
    "LLM_CHECKER_NAME",
    "ScheduledAction",
    "UrgencyLevel",
    "UserOverrideMode",
    "VALIDATOR_NAME",
    "ValidationMethod",
    "utc_now",
]

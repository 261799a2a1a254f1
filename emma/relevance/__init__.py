"""Action relevance validation.

Decides at execution time whether a scheduled action should still fire,
combining rule-based criteria with an LLM judgment.
"""

from emma.relevance.models import (
    ActionRelevanceConfig,
    ActionRelevanceRequest,
    ActionRelevanceResult,
    ContactContext,
    Disposition,
    ScheduledAction,
    UrgencyLevel,
    UserOverrideMode,
    ValidationMethod,
)
from emma.relevance.sources import (
    ContextSource,
    ContextSourceError,
    InMemoryContextSource,
    PromptSource,
    StaticPromptSource,
)
from emma.relevance.validator import ActionRelevanceValidator

__all__ = [
    "ActionRelevanceConfig",
    "ActionRelevanceRequest",
    "ActionRelevanceResult",
    "ActionRelevanceValidator",
    "ContactContext",
    "ContextSource",
    "ContextSourceError",
    "Disposition",
    "InMemoryContextSource",
    "PromptSource",
    "ScheduledAction",
    "StaticPromptSource",
    "UrgencyLevel",
    "UserOverrideMode",
    "ValidationMethod",
]

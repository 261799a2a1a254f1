"""External collaborators of the relevance validator.

ContextSource supplies contact snapshots and PromptSource supplies system
prompts. Both are abstract; the in-memory / static implementations back
tests and local development.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from uuid import UUID

from emma.observability.logging import get_logger
from emma.relevance.models import ContactContext

logger = get_logger(__name__)

_PROMPT_DIR = Path(__file__).parent / "prompts"

ACTION_RELEVANCE_ROLE = "ActionRelevanceValidator"


class ContextSourceError(Exception):
    """Raised when a contact context cannot be produced."""

    pass


class ContextSource(ABC):
    """Abstract supplier of fresh contact context snapshots."""

    @abstractmethod
    async def fetch(
        self,
        contact_id: UUID,
        organization_id: UUID,
        requesting_agent_id: str,
        trace_id: str,
    ) -> ContactContext:
        """Return the contact's current situation."""
        pass


class PromptSource(ABC):
    """Abstract supplier of system prompts per validator role."""

    @abstractmethod
    async def get_system_prompt(
        self,
        role_name: str,
        industry_profile: str | None = None,
    ) -> str:
        """Return the system prompt for a role, optionally industry-specific."""
        pass


class InMemoryContextSource(ContextSource):
    """Dict-backed ContextSource for testing and development."""

    def __init__(self, contexts: dict[UUID, ContactContext] | None = None) -> None:
        self._contexts: dict[UUID, ContactContext] = dict(contexts or {})

    def put(self, context: ContactContext) -> None:
        """Store or replace the snapshot for a contact."""
        if context.contact_id is None:
            raise ValueError("context must carry a contact_id")
        self._contexts[context.contact_id] = context

    async def fetch(
        self,
        contact_id: UUID,
        organization_id: UUID,
        requesting_agent_id: str,
        trace_id: str,
    ) -> ContactContext:
        context = self._contexts.get(contact_id)
        if context is None:
            raise ContextSourceError(f"No context for contact {contact_id}")
        if context.organization_id is not None and context.organization_id != organization_id:
            raise ContextSourceError(
                f"Contact {contact_id} does not belong to organization {organization_id}"
            )
        logger.debug(
            "context_fetched",
            contact_id=str(contact_id),
            requesting_agent_id=requesting_agent_id,
            trace_id=trace_id,
        )
        return context


class StaticPromptSource(PromptSource):
    """PromptSource serving fixed prompts.

    Lookup order: (role, industry) override, role default, packaged default
    for the action relevance role.
    """

    def __init__(
        self,
        prompts: dict[str, str] | None = None,
        industry_prompts: dict[tuple[str, str], str] | None = None,
    ) -> None:
        self._prompts = {
            ACTION_RELEVANCE_ROLE: (_PROMPT_DIR / "action_relevance_system.txt").read_text(),
        }
        self._prompts.update(prompts or {})
        self._industry_prompts = {
            (role, industry.lower()): text
            for (role, industry), text in (industry_prompts or {}).items()
        }

    async def get_system_prompt(
        self,
        role_name: str,
        industry_profile: str | None = None,
    ) -> str:
        if industry_profile:
            specific = self._industry_prompts.get((role_name, industry_profile.lower()))
            if specific is not None:
                return specific
        try:
            return self._prompts[role_name]
        except KeyError:
            raise LookupError(f"No system prompt for role {role_name}") from None

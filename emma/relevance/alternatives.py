"""Alternative action suggestions for actions that are no longer relevant."""

from collections.abc import Callable
from datetime import datetime, timedelta

from emma.observability.logging import get_logger
from emma.relevance.models import ContactContext, ScheduledAction, utc_now

logger = get_logger(__name__)

# action_type -> (alternative action_type, description)
ALTERNATIVES: dict[str, tuple[str, str]] = {
    "congrats_email": ("follow_up_email", "Follow up on recent activity"),
    "appointment_reminder": ("reschedule_request", "Request to reschedule appointment"),
    "property_recommendation": ("market_update", "Send market update instead"),
}

DEFAULT_ALTERNATIVE_DELAY = timedelta(hours=1)


class AlternativeActionSuggester:
    """Map an action type to replacement actions from a static table."""

    def __init__(
        self,
        delay: timedelta = DEFAULT_ALTERNATIVE_DELAY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._delay = delay
        self._clock = clock

    def suggest(
        self,
        original: ScheduledAction,
        context: ContactContext,
        trace_id: str,
    ) -> list[ScheduledAction]:
        """Return alternatives for the action, or an empty list."""
        entry = ALTERNATIVES.get(original.action_type.lower())
        if entry is None:
            return []

        action_type, description = entry
        logger.debug(
            "alternative_actions_suggested",
            original_type=original.action_type,
            alternative_type=action_type,
            trace_id=trace_id,
        )
        return [
            ScheduledAction(
                action_type=action_type,
                description=description,
                contact_id=original.contact_id,
                organization_id=original.organization_id,
                scheduled_by_agent_id=original.scheduled_by_agent_id,
                execute_at=self._clock() + self._delay,
                parameters=dict(original.parameters),
                relevance_criteria=dict(original.relevance_criteria),
                priority=original.priority,
                trace_id=trace_id,
            )
        ]

"""Relevance criterion parsing and evaluation.

A scheduled action carries a map of criterion name -> expected value. Names
are parsed into a known CriterionKind or left as an unknown extension.
Unknown criteria pass (with a warning) so newly introduced criteria never
block execution before the evaluator learns them; an error while
evaluating a known criterion fails that criterion.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from emma.observability.logging import get_logger
from emma.relevance.models import ContactContext, utc_now

logger = get_logger(__name__)


class CriterionKind(str, Enum):
    """Criteria the evaluator understands, keyed by lowercased name."""

    DEAL_STATUS = "dealstatus"
    CONTACT_ENGAGEMENT = "contactengagement"
    LAST_INTERACTION_AGE = "lastinteractionage"


@dataclass(frozen=True)
class Criterion:
    """One parsed relevance criterion.

    kind is None for names the evaluator does not know.
    """

    name: str
    expected: Any
    kind: CriterionKind | None = None

    @property
    def is_known(self) -> bool:
        return self.kind is not None


def parse_criteria(criteria: Mapping[str, Any] | None) -> list[Criterion]:
    """Parse a criteria map, preserving insertion order."""
    parsed: list[Criterion] = []
    for name, expected in (criteria or {}).items():
        try:
            kind: CriterionKind | None = CriterionKind(name.lower())
        except ValueError:
            kind = None
        parsed.append(Criterion(name=name, expected=expected, kind=kind))
    return parsed


CriterionHandler = Callable[[Any, ContactContext, datetime], bool]


def _same_text(expected: Any, actual: Any) -> bool:
    if expected is None:
        raise ValueError("criterion has no expected value")
    if actual is None:
        return False
    return str(expected).casefold() == str(actual).casefold()


def _check_deal_status(expected: Any, context: ContactContext, now: datetime) -> bool:
    return _same_text(expected, context.get_data("dealStatus"))


def _check_contact_engagement(expected: Any, context: ContactContext, now: datetime) -> bool:
    return _same_text(expected, context.get_data("engagementLevel"))


def _check_last_interaction_age(expected: Any, context: ContactContext, now: datetime) -> bool:
    max_days = int(str(expected).strip())
    last = context.last_interaction_date
    if last is None:
        # No recorded interaction: age is unbounded
        return False
    if last.tzinfo is None:
        last = last.replace(tzinfo=UTC)
    return now - last <= timedelta(days=max_days)


DEFAULT_HANDLERS: dict[CriterionKind, CriterionHandler] = {
    CriterionKind.DEAL_STATUS: _check_deal_status,
    CriterionKind.CONTACT_ENGAGEMENT: _check_contact_engagement,
    CriterionKind.LAST_INTERACTION_AGE: _check_last_interaction_age,
}


class CriterionEvaluator:
    """Evaluate a single criterion against a contact context."""

    def __init__(
        self,
        handlers: Mapping[CriterionKind, CriterionHandler] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the evaluator.

        Args:
            handlers: Handler per criterion kind (defaults cover every kind)
            clock: Source of "now" for age comparisons

        Raises:
            ValueError: If any CriterionKind has no handler
        """
        self._handlers = dict(handlers or DEFAULT_HANDLERS)
        missing = set(CriterionKind) - self._handlers.keys()
        if missing:
            names = ", ".join(sorted(kind.value for kind in missing))
            raise ValueError(f"No handler for criterion kinds: {names}")
        self._clock = clock

    def evaluate(self, criterion: Criterion, context: ContactContext, trace_id: str) -> bool:
        """Return True if the criterion holds for the context."""
        if criterion.kind is None:
            logger.warning(
                "unknown_relevance_criterion",
                criterion=criterion.name,
                trace_id=trace_id,
            )
            return True

        try:
            return bool(self._handlers[criterion.kind](criterion.expected, context, self._clock()))
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "criterion_evaluation_error",
                criterion=criterion.name,
                expected=str(criterion.expected),
                error=str(exc),
                trace_id=trace_id,
            )
            return False

"""Test factories for creating test data."""

from tests.factories.relevance import (
    ContactContextFactory,
    FrozenClock,
    RequestFactory,
    ResultFactory,
    ScheduledActionFactory,
)

__all__ = [
    "ContactContextFactory",
    "FrozenClock",
    "RequestFactory",
    "ResultFactory",
    "ScheduledActionFactory",
]

"""Bounded in-memory audit trail of validation results."""

import threading
from collections import deque
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from emma.observability.metrics import AUDIT_TRAIL_ENTRIES

if TYPE_CHECKING:
    from emma.relevance.models import ActionRelevanceResult

DEFAULT_CAPACITY = 10_000


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class AuditTrail:
    """Ring buffer of ActionRelevanceResult.

    Appends are O(1); once full, the oldest entry is evicted. Queries copy
    matching entries out under the lock, so callers never hold references
    into the live buffer.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._entries: deque["ActionRelevanceResult"] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(self, result: "ActionRelevanceResult") -> None:
        """Append a result, evicting the oldest when full."""
        with self._lock:
            self._entries.append(result)
            size = len(self._entries)
        AUDIT_TRAIL_ENTRIES.set(size)

    def query(
        self,
        contact_id: UUID | str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        action_type: str | None = None,
    ) -> list["ActionRelevanceResult"]:
        """Return matching results, newest first.

        Filters combine with AND. contact_id and action_type match against
        context_data["contactId"] and context_data["actionType"]; the date
        bounds are inclusive on checked_at. Naive datetimes are taken as UTC.
        """
        wanted_contact = str(contact_id) if contact_id is not None else None
        wanted_type = action_type.lower() if action_type else None
        start = _as_utc(start_date) if start_date is not None else None
        end = _as_utc(end_date) if end_date is not None else None

        with self._lock:
            entries = list(reversed(self._entries))

        matches = []
        for result in entries:
            data = result.context_data
            if wanted_contact is not None and str(data.get("contactId")) != wanted_contact:
                continue
            checked_at = _as_utc(result.checked_at)
            if start is not None and checked_at < start:
                continue
            if end is not None and checked_at > end:
                continue
            if wanted_type is not None and str(data.get("actionType", "")).lower() != wanted_type:
                continue
            matches.append(result)

        # Stable: equal timestamps keep newest-inserted first
        matches.sort(key=lambda r: _as_utc(r.checked_at), reverse=True)
        return matches

    def snapshot(self) -> list["ActionRelevanceResult"]:
        """Return all entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        AUDIT_TRAIL_ENTRIES.set(0)

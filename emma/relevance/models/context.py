"""Contact context snapshot."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ContactContext(BaseModel):
    """Point-in-time snapshot of a contact's situation.

    Built fresh per validation (or supplied by the caller) and never
    persisted here.
    """

    contact_id: UUID | None = None
    organization_id: UUID | None = None
    last_interaction_date: datetime | None = Field(
        default=None, description="Timestamp of the most recent interaction"
    )
    interaction_summary: str | None = None
    industry: str | None = None
    additional_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Criterion-relevant facts (dealStatus, engagementLevel, ...)",
    )
    captured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def get_data(self, key: str, default: Any = None) -> Any:
        """Look up additional data, ignoring key case."""
        if key in self.additional_data:
            return self.additional_data[key]
        wanted = key.lower()
        for name, value in self.additional_data.items():
            if name.lower() == wanted:
                return value
        return default

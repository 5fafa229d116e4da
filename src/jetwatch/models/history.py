"""Audit trail models.

Two independent trails exist for one flight: the workflow engine's
execution history and the persistence layer's state transitions. They are
fetched separately and never merged.
"""

from __future__ import annotations

import json
from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jetwatch.ingestion.normalize import non_negative_or_zero
from jetwatch.models._base import JetwatchBaseModel


class WorkflowHistoryEvent(JetwatchBaseModel):
    """One execution-history event.

    ``timestamp`` is kept verbatim as formatted by the backend.
    """

    event_id: int = 0
    event_type: str = ""
    timestamp: str | None = None
    description: str = ""
    category: str = "other"


class StateTransition(JetwatchBaseModel):
    """One recorded state transition with the flight snapshot at that time."""

    flight_number: str | None = None
    flight_date: date | None = None
    from_state: str | None = None
    to_state: str | None = None
    timestamp: datetime | None = None
    gate: str | None = None
    delay: int = 0
    aircraft: str | None = None
    event_type: str | None = None
    event_details: str | None = None

    @field_validator("delay", mode="before")
    @classmethod
    def _clamp_delay(cls, value: Any) -> int:
        return non_negative_or_zero(value) or 0

    @property
    def is_initial(self) -> bool:
        return self.from_state is None

    @property
    def from_label(self) -> str:
        return self.from_state or "START"

    @property
    def detail(self) -> str | None:
        return self.event_details or self.event_type


class HistoryExport(BaseModel):
    """Downloadable execution-history document for one flight."""

    model_config = ConfigDict(frozen=True)

    subject_key: str
    exported_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    history: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_events(
        cls,
        subject_key: str,
        events: list[WorkflowHistoryEvent],
        *,
        exported_at: datetime | None = None,
    ) -> HistoryExport:
        # Prefer the payload as received so unknown fields survive export.
        history = [dict(event.raw) if event.raw else event.to_wire() for event in events]
        return cls(
            subject_key=subject_key,
            history=history,
            exported_at=exported_at or datetime.now(UTC),
        )

    @property
    def event_count(self) -> int:
        return len(self.history)

    @property
    def filename(self) -> str:
        return f"{self.subject_key}-history-{self.exported_at.date().isoformat()}.json"

    def to_document(self) -> dict[str, Any]:
        return {
            "subjectKey": self.subject_key,
            "exportedAt": self.exported_at.isoformat(),
            "eventCount": self.event_count,
            "history": self.history,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_document(), indent=2)

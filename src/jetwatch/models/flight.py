"""Flight models.

:class:`Flight` is the tracked entity held by the state store. It arrives
either as a full record (push channel, details endpoint) or is built from
an :class:`ActiveFlightSummary` row of the list-active endpoint.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import Field, field_validator

from jetwatch.ingestion.normalize import format_duration, non_negative_or_zero, safe_str
from jetwatch.models._base import JetwatchBaseModel

_STATE_KEYS = frozenset({"currentState", "current_state"})

#: States the backend is known to emit. The store treats state as an
#: opaque string, so values outside this set are kept as-is.
KNOWN_STATES: tuple[str, ...] = (
    "SCHEDULED",
    "BOARDING",
    "DEPARTED",
    "IN_FLIGHT",
    "LANDED",
    "COMPLETED",
    "DELAYED",
    "CANCELLED",
)


def _require_flight_number(value: str) -> str:
    flight_number = value.strip()
    if not flight_number:
        raise ValueError("flight_number must be non-empty")
    return flight_number


class Flight(JetwatchBaseModel):
    """A tracked flight as the backend describes it.

    Parameters
    ----------
    flight_number : str
        Business key, unique among active flights.
    current_state : str or None
        Lifecycle state exactly as sent by the backend. Blank values are kept;
        only :attr:`display_state` falls back to ``SCHEDULED``.
    gate : str or None
        Assigned gate.
    aircraft : str or None
        Equipment identifier.
    delay : int
        Delay in minutes, never negative.
    elapsed_time : str or None
        Raw ISO-8601 duration of the running workflow (list-active only).
    """

    verbatim_keys: ClassVar[frozenset[str]] = _STATE_KEYS

    flight_number: str
    current_state: str | None = None
    gate: str | None = None
    aircraft: str | None = None
    delay: int = 0
    departure_station: str | None = None
    arrival_station: str | None = None
    flight_date: date | None = None
    scheduled_departure: datetime | None = None
    scheduled_arrival: datetime | None = None
    workflow_id: str | None = None
    elapsed_time: str | None = None
    previous_flight_number: str | None = None
    next_flight_number: str | None = None

    @field_validator("flight_number")
    @classmethod
    def _normalize_flight_number(cls, value: str) -> str:
        return _require_flight_number(value)

    @field_validator("delay", mode="before")
    @classmethod
    def _clamp_delay(cls, value: Any) -> int:
        return non_negative_or_zero(value) or 0

    @field_validator("current_state", mode="before")
    @classmethod
    def _keep_state(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("gate", "aircraft", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def key(self) -> str:
        return self.flight_number

    @property
    def display_state(self) -> str:
        return self.current_state or "SCHEDULED"

    @property
    def elapsed_display(self) -> str:
        return format_duration(self.elapsed_time)

    @property
    def route(self) -> str | None:
        if not self.departure_station and not self.arrival_station:
            return None
        return f"{self.departure_station or '?'} → {self.arrival_station or '?'}"


class ActiveFlightSummary(JetwatchBaseModel):
    """Abbreviated row returned by the list-active endpoint."""

    verbatim_keys: ClassVar[frozenset[str]] = _STATE_KEYS

    flight_number: str
    workflow_id: str | None = None
    current_state: str | None = None
    gate: str | None = None
    delay: int = 0
    start_time: datetime | None = None
    elapsed_time: str | None = None

    @field_validator("flight_number")
    @classmethod
    def _normalize_flight_number(cls, value: str) -> str:
        return _require_flight_number(value)

    @field_validator("delay", mode="before")
    @classmethod
    def _clamp_delay(cls, value: Any) -> int:
        return non_negative_or_zero(value) or 0

    @field_validator("elapsed_time", mode="before")
    @classmethod
    def _coerce_elapsed(cls, value: Any) -> str | None:
        # Some serializers emit durations as a number of seconds.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"PT{value}S"
        return safe_str(value)

    def to_flight(self) -> Flight:
        return Flight(
            flight_number=self.flight_number,
            workflow_id=self.workflow_id,
            current_state=self.current_state,
            gate=self.gate,
            delay=self.delay,
            elapsed_time=self.elapsed_time,
            raw=self.raw,
        )


class FlightEvent(JetwatchBaseModel):
    """Free-form event from the flight-events topic."""

    flight_number: str = Field(default="SYSTEM")
    state: str | None = None
    message: str = ""

    @property
    def label(self) -> str:
        return self.state or "EVENT"


class StartFlightResponse(JetwatchBaseModel):
    workflow_id: str | None = None
    flight_number: str | None = None
    message: str | None = None


class StartJourneyResponse(JetwatchBaseModel):
    workflow_id: str | None = None
    journey_id: str | None = None
    number_of_legs: int = 0


class CommandResult(JetwatchBaseModel):
    """Success envelope returned by signal endpoints (``{error, message}``)."""

    error: str | None = None
    message: str | None = None
    status: str | None = None

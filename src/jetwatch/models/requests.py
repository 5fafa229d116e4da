"""Pydantic request models for console commands.

These models provide a consistent "validate → normalize → execute" flow.
They are used internally by :class:`jetwatch.client.FlightConsole`.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from pydantic import Field, field_validator

from jetwatch._constants import DEFAULT_CANCEL_REASON
from jetwatch.models._base import JetwatchRequest


def _non_empty(value: str, name: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError(f"{name} must be non-empty")
    return text


class StartFlightRequest(JetwatchRequest):
    """Payload for starting a single flight workflow."""

    flight_number: str
    flight_date: date
    departure_station: str
    arrival_station: str
    scheduled_departure: datetime
    scheduled_arrival: datetime
    gate: str | None = None
    aircraft: str | None = None

    @field_validator("flight_number")
    @classmethod
    def _flight_number_non_empty(cls, value: str) -> str:
        return _non_empty(value, "flight_number")

    @classmethod
    def scheduled_from(
        cls,
        now: datetime,
        *,
        flight_number: str,
        departure_station: str,
        arrival_station: str,
        gate: str | None = None,
        aircraft: str | None = None,
    ) -> StartFlightRequest:
        """Build a request departing two hours after *now* with a three hour block."""
        departure = now + timedelta(hours=2)
        return cls(
            flight_number=flight_number,
            flight_date=now.date(),
            departure_station=departure_station,
            arrival_station=arrival_station,
            scheduled_departure=departure,
            scheduled_arrival=departure + timedelta(hours=3),
            gate=gate,
            aircraft=aircraft,
        )


class StartJourneyRequest(JetwatchRequest):
    """Payload for a multi-leg journey; legs are linked in list order."""

    journey_id: str
    flights: list[StartFlightRequest] = Field(min_length=1)

    @field_validator("journey_id")
    @classmethod
    def _journey_id_non_empty(cls, value: str) -> str:
        return _non_empty(value, "journey_id")


class AnnounceDelayRequest(JetwatchRequest):
    minutes: int = Field(gt=0)


class ChangeGateRequest(JetwatchRequest):
    new_gate: str

    @field_validator("new_gate")
    @classmethod
    def _gate_non_empty(cls, value: str) -> str:
        return _non_empty(value, "new_gate")


class CancelFlightRequest(JetwatchRequest):
    reason: str = DEFAULT_CANCEL_REASON

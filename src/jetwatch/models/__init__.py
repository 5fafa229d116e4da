"""Data models for the flight API and the push channel."""

from jetwatch.models._base import JetwatchBaseModel, JetwatchRequest
from jetwatch.models.flight import (
    KNOWN_STATES,
    ActiveFlightSummary,
    CommandResult,
    Flight,
    FlightEvent,
    StartFlightResponse,
    StartJourneyResponse,
)
from jetwatch.models.history import HistoryExport, StateTransition, WorkflowHistoryEvent
from jetwatch.models.requests import (
    AnnounceDelayRequest,
    CancelFlightRequest,
    ChangeGateRequest,
    StartFlightRequest,
    StartJourneyRequest,
)

__all__ = [
    "KNOWN_STATES",
    "ActiveFlightSummary",
    "AnnounceDelayRequest",
    "CancelFlightRequest",
    "ChangeGateRequest",
    "CommandResult",
    "Flight",
    "FlightEvent",
    "HistoryExport",
    "JetwatchBaseModel",
    "JetwatchRequest",
    "StartFlightRequest",
    "StartFlightResponse",
    "StartJourneyRequest",
    "StartJourneyResponse",
    "StateTransition",
    "WorkflowHistoryEvent",
]

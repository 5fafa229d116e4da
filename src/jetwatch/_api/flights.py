"""Flight endpoints.

Endpoints:
  - GET  /api/flights/active
  - GET  /api/flights/{flightNumber}/details
  - POST /api/flights/start
  - POST /api/flights/journey
  - POST /api/flights/{flightNumber}/delay
  - POST /api/flights/{flightNumber}/gate
  - POST /api/flights/{flightNumber}/cancel
"""

from __future__ import annotations

import logging

from jetwatch._api._common import FLIGHTS_PREFIX, flight_path, require_list, require_object
from jetwatch._transport import Transport
from jetwatch.models.flight import ActiveFlightSummary, CommandResult, Flight, StartFlightResponse, StartJourneyResponse
from jetwatch.models.requests import (
    AnnounceDelayRequest,
    CancelFlightRequest,
    ChangeGateRequest,
    StartFlightRequest,
    StartJourneyRequest,
)

_logger = logging.getLogger(__name__)


async def fetch_active_flights(transport: Transport) -> list[Flight]:
    """Fetch every active flight as a store-ready record."""
    endpoint = f"{FLIGHTS_PREFIX}/active"
    rows = require_list(await transport.request_json("GET", endpoint), endpoint)
    flights = [ActiveFlightSummary.model_validate(row).to_flight() for row in rows]
    _logger.debug("Fetched %d active flights", len(flights))
    return flights


async def fetch_flight_details(transport: Transport, flight_number: str) -> Flight:
    endpoint = flight_path(flight_number, "details")
    body = require_object(await transport.request_json("GET", endpoint), endpoint)
    return Flight.model_validate(body)


async def start_flight(transport: Transport, request: StartFlightRequest) -> StartFlightResponse:
    endpoint = f"{FLIGHTS_PREFIX}/start"
    body = await transport.request_json("POST", endpoint, payload=request.to_payload())
    return StartFlightResponse.model_validate(body or {})


async def start_journey(transport: Transport, request: StartJourneyRequest) -> StartJourneyResponse:
    endpoint = f"{FLIGHTS_PREFIX}/journey"
    body = await transport.request_json("POST", endpoint, payload=request.to_payload())
    return StartJourneyResponse.model_validate(body or {})


async def _signal(transport: Transport, endpoint: str, payload: dict[str, object]) -> CommandResult:
    body = await transport.request_json("POST", endpoint, payload=payload)
    return CommandResult.model_validate(body if isinstance(body, dict) else {})


async def announce_delay(transport: Transport, flight_number: str, request: AnnounceDelayRequest) -> CommandResult:
    return await _signal(transport, flight_path(flight_number, "delay"), request.to_payload())


async def change_gate(transport: Transport, flight_number: str, request: ChangeGateRequest) -> CommandResult:
    return await _signal(transport, flight_path(flight_number, "gate"), request.to_payload())


async def cancel_flight(transport: Transport, flight_number: str, request: CancelFlightRequest) -> CommandResult:
    return await _signal(transport, flight_path(flight_number, "cancel"), request.to_payload())

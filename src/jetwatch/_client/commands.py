"""Internal operator commands for :class:`jetwatch.client.FlightConsole`.

These functions keep `client.py` small without changing the public API.
Commands are forward-only: the backend owns every state change and the
console learns about the outcome through the push channel or the next
reconciliation tick.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from jetwatch._api.admin import restart_worker as restart_worker_api
from jetwatch._api.flights import announce_delay as announce_delay_api
from jetwatch._api.flights import cancel_flight as cancel_flight_api
from jetwatch._api.flights import change_gate as change_gate_api
from jetwatch._api.flights import fetch_flight_details
from jetwatch._api.flights import start_flight as start_flight_api
from jetwatch._api.flights import start_journey as start_journey_api
from jetwatch._constants import DEFAULT_CANCEL_REASON, SYSTEM_KEY
from jetwatch.exceptions import JetwatchError
from jetwatch.models.flight import CommandResult, StartFlightResponse, StartJourneyResponse
from jetwatch.models.requests import (
    AnnounceDelayRequest,
    CancelFlightRequest,
    ChangeGateRequest,
    StartFlightRequest,
    StartJourneyRequest,
)

if TYPE_CHECKING:
    from jetwatch.client import FlightConsole

_logger = logging.getLogger(__name__)


def _reject(console: FlightConsole, action: str, exc: Exception) -> None:
    _logger.warning("%s failed: %s", action, exc)
    console.renderer.notify(f"Error {action}: {exc}")


async def start_flight(console: FlightConsole, request: StartFlightRequest) -> StartFlightResponse | None:
    transport = console._require_transport()
    try:
        response = await start_flight_api(transport, request)
    except JetwatchError as exc:
        _reject(console, "starting flight", exc)
        return None

    key = request.flight_number
    console.activity.append(key, "SCHEDULED", "Flight started successfully")
    console._schedule(console.config.start_detail_delay, lambda: console._spawn(refresh_started_flight(console, key)))
    return response


async def refresh_started_flight(console: FlightConsole, key: str) -> bool:
    """Pull details of a freshly started flight into the store."""
    transport = console._require_transport()
    try:
        flight = await fetch_flight_details(transport, key)
    except (JetwatchError, ValidationError) as exc:
        _logger.warning("Details for started flight %s unavailable: %s", key, exc)
        return False
    console.store.upsert_one(flight)
    return True


async def start_journey(console: FlightConsole, request: StartJourneyRequest) -> StartJourneyResponse | None:
    transport = console._require_transport()
    try:
        response = await start_journey_api(transport, request)
    except JetwatchError as exc:
        _reject(console, "starting journey", exc)
        return None

    legs = response.number_of_legs or len(request.flights)
    console.activity.append(request.journey_id, "SCHEDULED", f"Journey started with {legs} legs")
    return response


async def announce_delay(console: FlightConsole, key: str, minutes: int) -> CommandResult | None:
    try:
        request = AnnounceDelayRequest(minutes=minutes)
        return await announce_delay_api(console._require_transport(), key, request)
    except (JetwatchError, ValidationError) as exc:
        _reject(console, f"announcing delay for {key}", exc)
        return None


async def change_gate(console: FlightConsole, key: str, new_gate: str) -> CommandResult | None:
    try:
        request = ChangeGateRequest(new_gate=new_gate)
        return await change_gate_api(console._require_transport(), key, request)
    except (JetwatchError, ValidationError) as exc:
        _reject(console, f"changing gate for {key}", exc)
        return None


async def cancel_flight(
    console: FlightConsole,
    key: str,
    reason: str | None = None,
) -> CommandResult | None:
    try:
        request = CancelFlightRequest(reason=reason or DEFAULT_CANCEL_REASON)
        return await cancel_flight_api(console._require_transport(), key, request)
    except (JetwatchError, ValidationError) as exc:
        _reject(console, f"cancelling flight {key}", exc)
        return None


async def restart_worker(console: FlightConsole) -> CommandResult | None:
    console.activity.append(SYSTEM_KEY, "ADMIN", "Simulating worker failure...")
    try:
        result = await restart_worker_api(console._require_transport())
    except JetwatchError as exc:
        console.activity.append(SYSTEM_KEY, "ERROR", f"Failed to restart worker: {exc}")
        _reject(console, "restarting worker", exc)
        return None

    console.activity.append(SYSTEM_KEY, "ADMIN", result.message or "Worker restarted")
    return result

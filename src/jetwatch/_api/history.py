"""Audit trail endpoints.

Endpoints:
  - GET /api/flights/{flightNumber}/history
  - GET /api/flights/{flightNumber}/transition-history
"""

from __future__ import annotations

from jetwatch._api._common import date_params, flight_path, require_list
from jetwatch._transport import Transport
from jetwatch.models.history import StateTransition, WorkflowHistoryEvent


async def fetch_execution_history(
    transport: Transport,
    flight_number: str,
    *,
    flight_date: str | None = None,
) -> list[WorkflowHistoryEvent]:
    endpoint = flight_path(flight_number, "history")
    body = await transport.request_json("GET", endpoint, params=date_params(flight_date))
    return [WorkflowHistoryEvent.model_validate(item) for item in require_list(body, endpoint)]


async def fetch_transition_history(
    transport: Transport,
    flight_number: str,
    *,
    flight_date: str | None = None,
) -> list[StateTransition]:
    endpoint = flight_path(flight_number, "transition-history")
    body = await transport.request_json("GET", endpoint, params=date_params(flight_date))
    return [StateTransition.model_validate(item) for item in require_list(body, endpoint)]

"""Shared helpers for endpoint modules."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from jetwatch.exceptions import JetwatchTransportError

FLIGHTS_PREFIX = "/api/flights"
ADMIN_PREFIX = "/api/admin"


def flight_path(flight_number: str, suffix: str) -> str:
    return f"{FLIGHTS_PREFIX}/{quote(flight_number, safe='')}/{suffix}"


def date_params(flight_date: str | None) -> dict[str, str] | None:
    return {"flightDate": flight_date} if flight_date else None


def require_list(body: Any, endpoint: str) -> list[dict[str, Any]]:
    """Ensure a list-shaped response; ``None`` counts as empty."""
    if body is None:
        return []
    if not isinstance(body, list):
        raise JetwatchTransportError(f"Expected a JSON array from {endpoint}", endpoint=endpoint)
    return [item for item in body if isinstance(item, dict)]


def require_object(body: Any, endpoint: str) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise JetwatchTransportError(f"Expected a JSON object from {endpoint}", endpoint=endpoint)
    return body

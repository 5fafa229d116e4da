from __future__ import annotations

from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from jetwatch._api.flights import announce_delay, fetch_active_flights, fetch_flight_details
from jetwatch._api.history import fetch_execution_history
from jetwatch._transport import HttpTransport
from jetwatch.config import JetwatchConfig
from jetwatch.exceptions import JetwatchNotFoundError, JetwatchRejectionError, JetwatchTransportError
from jetwatch.models.requests import AnnounceDelayRequest

_Env = tuple[HttpTransport, list[tuple[str, str, object]]]


def _app(seen: list[tuple[str, str, object]]) -> web.Application:
    async def _active(_request: web.Request) -> web.Response:
        return web.json_response(
            [
                {"flightNumber": "AB123", "currentState": "BOARDING", "gate": "B7", "elapsedTime": "PT1M"},
                {"flightNumber": "CD456", "currentState": "IN_FLIGHT"},
            ]
        )

    async def _details(request: web.Request) -> web.Response:
        key = request.match_info["key"]
        if key == "ZZ999":
            return web.json_response({"error": "NOT_FOUND", "message": "Flight ZZ999 not found"}, status=404)
        return web.json_response({"flightNumber": key, "currentState": "BOARDING"})

    async def _delay(request: web.Request) -> web.Response:
        body = await request.json()
        seen.append((request.method, request.path, body))
        if body["minutes"] > 600:
            return web.json_response({"error": "INVALID", "message": "Delay too long"}, status=400)
        return web.json_response({"message": "Delay announced"})

    async def _history(request: web.Request) -> web.Response:
        seen.append((request.method, request.path, dict(request.query)))
        return web.Response(status=500, text="<html>Internal Server Error</html>")

    async def _garbage(_request: web.Request) -> web.Response:
        return web.Response(text="not json", content_type="application/json")

    app = web.Application()
    app.router.add_get("/api/flights/active", _active)
    app.router.add_get("/api/flights/{key}/details", _details)
    app.router.add_post("/api/flights/{key}/delay", _delay)
    app.router.add_get("/api/flights/{key}/history", _history)
    app.router.add_get("/api/flights/{key}/transition-history", _garbage)
    return app


@pytest_asyncio.fixture
async def transport_env() -> AsyncIterator[_Env]:
    seen: list[tuple[str, str, object]] = []
    async with TestServer(_app(seen)) as server, aiohttp.ClientSession() as session:
        config = JetwatchConfig(base_url=str(server.make_url("/")))
        yield HttpTransport(config, session), seen


@pytest.mark.asyncio
async def test_active_flights_become_store_records(transport_env: _Env) -> None:
    transport, _ = transport_env

    flights = await fetch_active_flights(transport)

    assert [flight.flight_number for flight in flights] == ["AB123", "CD456"]
    assert flights[0].elapsed_display == "1m 0s"


@pytest.mark.asyncio
async def test_not_found_maps_to_not_found_error(transport_env: _Env) -> None:
    transport, _ = transport_env

    assert (await fetch_flight_details(transport, "AB123")).current_state == "BOARDING"
    with pytest.raises(JetwatchNotFoundError) as exc_info:
        await fetch_flight_details(transport, "ZZ999")

    assert exc_info.value.status_code == 404
    assert exc_info.value.code == "NOT_FOUND"
    assert str(exc_info.value) == "Flight ZZ999 not found"


@pytest.mark.asyncio
async def test_signal_posts_camel_case_body(transport_env: _Env) -> None:
    transport, seen = transport_env

    result = await announce_delay(transport, "AB123", AnnounceDelayRequest(minutes=30))

    assert result.message == "Delay announced"
    assert seen == [("POST", "/api/flights/AB123/delay", {"minutes": 30})]


@pytest.mark.asyncio
async def test_error_body_becomes_rejection(transport_env: _Env) -> None:
    transport, _ = transport_env

    with pytest.raises(JetwatchRejectionError) as exc_info:
        await announce_delay(transport, "AB123", AnnounceDelayRequest(minutes=900))

    assert not isinstance(exc_info.value, JetwatchNotFoundError)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_error_without_message_is_transport_error(transport_env: _Env) -> None:
    transport, seen = transport_env

    with pytest.raises(JetwatchTransportError) as exc_info:
        await fetch_execution_history(transport, "AB123", flight_date="2026-10-18")

    assert exc_info.value.status_code == 500
    assert seen == [("GET", "/api/flights/AB123/history", {"flightDate": "2026-10-18"})]


@pytest.mark.asyncio
async def test_invalid_json_is_transport_error(transport_env: _Env) -> None:
    transport, _ = transport_env

    with pytest.raises(JetwatchTransportError, match="Invalid JSON"):
        await transport.request_json("GET", "/api/flights/AB123/transition-history")


@pytest.mark.asyncio
async def test_unreachable_server_is_transport_error() -> None:
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(JetwatchConfig(base_url="http://127.0.0.1:9", request_timeout=2.0), session)
        with pytest.raises(JetwatchTransportError):
            await fetch_active_flights(transport)

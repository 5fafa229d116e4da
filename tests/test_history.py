from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pytest

from jetwatch._client.history import HistoryAggregator
from jetwatch.exceptions import JetwatchNoHistoryError, JetwatchTransportError
from jetwatch.models.history import StateTransition, WorkflowHistoryEvent
from jetwatch.render import Renderer
from jetwatch.state.activity import ActivityLog

_EXECUTION = [
    {
        "eventId": 1,
        "eventType": "WorkflowExecutionStarted",
        "timestamp": "2026-10-18 08:00:00",
        "description": "Workflow started",
        "category": "workflow",
    },
    {
        "eventId": 5,
        "eventType": "WorkflowExecutionSignaled",
        "timestamp": "2026-10-18 08:10:00",
        "description": "Signal: announceDelay",
        "category": "signal",
    },
]
_TRANSITIONS = [
    {"flightNumber": "AB123", "fromState": None, "toState": "SCHEDULED", "timestamp": "2026-10-18T08:00:00"},
    {"flightNumber": "AB123", "fromState": "SCHEDULED", "toState": "BOARDING", "timestamp": "2026-10-18T08:30:00"},
    {
        "flightNumber": "AB123",
        "fromState": "BOARDING",
        "toState": "DEPARTED",
        "timestamp": "2026-10-18T09:00:00",
        "gate": "B7",
        "delay": 15,
    },
]


class _RecordingRenderer(Renderer):
    def __init__(self) -> None:
        self.execution: dict[str, list[WorkflowHistoryEvent]] = {}
        self.transitions: dict[str, list[StateTransition]] = {}
        self.failures: list[tuple[str, str]] = []
        self.downloads: list[tuple[str, str]] = []

    def render_execution_history(self, key: str, events: list[WorkflowHistoryEvent]) -> None:
        self.execution[key] = events

    def render_transition_history(self, key: str, transitions: list[StateTransition]) -> None:
        self.transitions[key] = transitions

    def history_failed(self, key: str, region: str, message: str) -> None:
        self.failures.append((key, region))

    def offer_download(self, filename: str, content: str) -> None:
        self.downloads.append((filename, content))


class _HistoryTransport:
    def __init__(self, responses: Mapping[str, Any]) -> None:
        self._responses = dict(responses)
        self.params: list[Mapping[str, str] | None] = []

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        self.params.append(params)
        response = self._responses[endpoint]
        if isinstance(response, asyncio.Future):
            response = await response
        if isinstance(response, Exception):
            raise response
        return response


class _SequencedTransport:
    """Serves the responses queued for an endpoint in request order."""

    def __init__(self, responses: Mapping[str, list[Any]]) -> None:
        self._responses = {endpoint: list(queue) for endpoint, queue in responses.items()}

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        response = self._responses[endpoint].pop(0)
        if isinstance(response, asyncio.Future):
            response = await response
        return response


def _aggregator(transport: Any) -> tuple[HistoryAggregator, _RecordingRenderer, ActivityLog]:
    renderer = _RecordingRenderer()
    activity = ActivityLog()
    return HistoryAggregator(transport=transport, renderer=renderer, activity=activity), renderer, activity


@pytest.mark.asyncio
async def test_execution_failure_does_not_block_transitions() -> None:
    transport = _HistoryTransport(
        {
            "/api/flights/AB123/history": JetwatchTransportError("HTTP 500", status_code=500),
            "/api/flights/AB123/transition-history": _TRANSITIONS,
        }
    )
    aggregator, renderer, _ = _aggregator(transport)

    await aggregator.load_history("AB123")

    assert [t.to_state for t in renderer.transitions["AB123"]] == ["SCHEDULED", "BOARDING", "DEPARTED"]
    assert renderer.transitions["AB123"][0].from_label == "START"
    assert renderer.failures == [("AB123", "execution")]
    assert "AB123" not in renderer.execution

    with pytest.raises(JetwatchNoHistoryError):
        aggregator.export_history()
    assert renderer.downloads == []


@pytest.mark.asyncio
async def test_export_offers_download_and_logs_audit_entry() -> None:
    transport = _HistoryTransport(
        {
            "/api/flights/AB123/history": _EXECUTION,
            "/api/flights/AB123/transition-history": [],
        }
    )
    aggregator, renderer, activity = _aggregator(transport)

    await aggregator.load_history("AB123", "2026-10-18")
    export = aggregator.export_history(now=datetime(2026, 10, 18, 12, 0, tzinfo=UTC))

    assert transport.params == [{"flightDate": "2026-10-18"}, {"flightDate": "2026-10-18"}]
    assert renderer.transitions["AB123"] == []
    assert export.event_count == 2
    filename, content = renderer.downloads[0]
    assert filename == "AB123-history-2026-10-18.json"
    assert json.loads(content)["history"][1]["eventType"] == "WorkflowExecutionSignaled"
    assert activity.latest is not None
    assert (activity.latest.subject_key, activity.latest.label) == ("AB123", "AUDIT")


@pytest.mark.asyncio
async def test_results_for_superseded_key_are_dropped() -> None:
    slow: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    transport = _HistoryTransport(
        {
            "/api/flights/AB123/history": slow,
            "/api/flights/AB123/transition-history": slow,
            "/api/flights/CD456/history": _EXECUTION,
            "/api/flights/CD456/transition-history": _TRANSITIONS,
        }
    )
    aggregator, renderer, _ = _aggregator(transport)

    first = asyncio.create_task(aggregator.load_history("AB123"))
    await asyncio.sleep(0)
    await aggregator.load_history("CD456")
    slow.set_result(_EXECUTION)
    await first

    assert set(renderer.execution) == {"CD456"}
    assert set(renderer.transitions) == {"CD456"}
    assert aggregator.current_key == "CD456"


@pytest.mark.asyncio
async def test_older_load_of_same_key_does_not_overwrite_newer() -> None:
    loop = asyncio.get_running_loop()
    slow_execution: asyncio.Future[Any] = loop.create_future()
    slow_transitions: asyncio.Future[Any] = loop.create_future()
    transport = _SequencedTransport(
        {
            "/api/flights/AB123/history": [slow_execution, _EXECUTION[1:]],
            "/api/flights/AB123/transition-history": [slow_transitions, _TRANSITIONS[:1]],
        }
    )
    aggregator, renderer, _ = _aggregator(transport)

    first = asyncio.create_task(aggregator.load_history("AB123"))
    await asyncio.sleep(0)
    await aggregator.load_history("AB123")
    slow_execution.set_result(_EXECUTION[:1])
    slow_transitions.set_result(_TRANSITIONS)
    await first

    assert aggregator.execution_history is not None
    assert [event.event_id for event in aggregator.execution_history] == [5]
    assert aggregator.transition_history is not None
    assert len(aggregator.transition_history) == 1
    assert [event.event_id for event in renderer.execution["AB123"]] == [5]


@pytest.mark.asyncio
async def test_dismiss_drops_load_still_in_flight() -> None:
    slow: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    transport = _HistoryTransport(
        {
            "/api/flights/AB123/history": slow,
            "/api/flights/AB123/transition-history": slow,
        }
    )
    aggregator, renderer, _ = _aggregator(transport)

    pending = asyncio.create_task(aggregator.load_history("AB123"))
    await asyncio.sleep(0)
    aggregator.dismiss()
    slow.set_result(_EXECUTION)
    await pending

    assert aggregator.execution_history is None
    assert renderer.execution == {}
    with pytest.raises(JetwatchNoHistoryError):
        aggregator.export_history()


@pytest.mark.asyncio
async def test_dismiss_discards_cache() -> None:
    transport = _HistoryTransport(
        {
            "/api/flights/AB123/history": _EXECUTION,
            "/api/flights/AB123/transition-history": _TRANSITIONS,
        }
    )
    aggregator, _, _ = _aggregator(transport)
    await aggregator.load_history("AB123")

    aggregator.dismiss()

    assert aggregator.execution_history is None
    assert aggregator.transition_history is None
    with pytest.raises(JetwatchNoHistoryError):
        aggregator.export_history()

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from jetwatch._stomp import ChannelMessage
from jetwatch.config import JetwatchConfig
from jetwatch.exceptions import JetwatchChannelError
from jetwatch.ingestion.push import ConnectionManager
from jetwatch.state.activity import ActivityLog
from jetwatch.state.events import ConnectionState
from jetwatch.state.store import StateStore

_END = object()


class _FakeHandle:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _FakeScheduler:
    def __init__(self) -> None:
        self.now = 0.0
        self._handles: list[_FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _FakeHandle:
        handle = _FakeHandle(self.now + delay, callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> list[_FakeHandle]:
        return [handle for handle in self._handles if not handle.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted((h for h in self.pending if h.when <= self.now), key=lambda h: h.when)
        for handle in due:
            self._handles.remove(handle)
            handle.callback()


class _FakeChannel:
    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False

    def push(self, destination: str, payload: Any) -> None:
        body = payload if isinstance(payload, str) else json.dumps(payload)
        self._queue.put_nowait(ChannelMessage(destination=destination, body=body))

    def drop(self, exc: Exception | None = None) -> None:
        self._queue.put_nowait(exc if exc is not None else _END)

    async def messages(self) -> AsyncIterator[ChannelMessage]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self) -> None:
        self.closed = True


class _ChannelFactory:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.channels: list[_FakeChannel] = []

    async def __call__(self) -> _FakeChannel:
        if self.failures:
            self.failures -= 1
            raise JetwatchChannelError("connection refused")
        channel = _FakeChannel()
        self.channels.append(channel)
        return channel


async def _drain() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


def _manager(
    factory: _ChannelFactory,
) -> tuple[ConnectionManager, StateStore, ActivityLog, _FakeScheduler, list[ConnectionState]]:
    store = StateStore()
    activity = ActivityLog()
    scheduler = _FakeScheduler()
    statuses: list[ConnectionState] = []
    manager = ConnectionManager(
        config=JetwatchConfig(),
        channel_factory=factory,
        store=store,
        activity=activity,
        scheduler=scheduler,
        on_status=statuses.append,
    )
    return manager, store, activity, scheduler, statuses


@pytest.mark.asyncio
async def test_flight_update_is_merged_and_logged() -> None:
    factory = _ChannelFactory()
    manager, store, activity, _, statuses = _manager(factory)

    assert await manager.connect() is True
    factory.channels[0].push("/topic/flights", {"flightNumber": "AB123", "currentState": "BOARDING", "gate": "B7"})
    await _drain()

    held = store.query("AB123")
    assert held is not None and held.gate == "B7"
    assert activity.latest is not None
    assert (activity.latest.subject_key, activity.latest.label, activity.latest.message) == (
        "AB123",
        "BOARDING",
        "State: BOARDING",
    )
    assert statuses == [ConnectionState.CONNECTING, ConnectionState.CONNECTED]
    await manager.disconnect()


@pytest.mark.asyncio
async def test_flight_event_only_reaches_activity_log() -> None:
    factory = _ChannelFactory()
    manager, store, activity, _, _ = _manager(factory)

    await manager.connect()
    factory.channels[0].push("/topic/flight-events", {"flightNumber": "AB123", "state": "DELAYED", "message": "Delay 30m"})
    factory.channels[0].push("/topic/flight-events", {"message": "Worker restarted"})
    await _drain()

    assert len(store) == 0
    assert [(entry.subject_key, entry.label) for entry in activity.entries()] == [
        ("SYSTEM", "EVENT"),
        ("AB123", "DELAYED"),
    ]
    await manager.disconnect()


@pytest.mark.asyncio
async def test_malformed_payload_is_dropped_and_channel_survives() -> None:
    factory = _ChannelFactory()
    manager, store, _, _, _ = _manager(factory)

    await manager.connect()
    channel = factory.channels[0]
    channel.push("/topic/flights", "{not json")
    channel.push("/topic/flights", {"gate": "B7"})
    channel.push("/topic/flights", {"flightNumber": "CD456"})
    await _drain()

    assert store.keys() == ["CD456"]
    assert manager.is_connected
    await manager.disconnect()


@pytest.mark.asyncio
async def test_failed_connect_retries_after_fixed_delay() -> None:
    factory = _ChannelFactory(failures=1)
    manager, _, _, scheduler, statuses = _manager(factory)

    assert await manager.connect() is False
    assert manager.state == ConnectionState.DISCONNECTED
    assert [handle.when for handle in scheduler.pending] == [5.0]

    scheduler.advance(4.0)
    await _drain()
    assert manager.state == ConnectionState.DISCONNECTED

    scheduler.advance(1.0)
    await _drain()

    assert manager.state == ConnectionState.CONNECTED
    assert statuses == [
        ConnectionState.CONNECTING,
        ConnectionState.DISCONNECTED,
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
    ]
    await manager.disconnect()


@pytest.mark.asyncio
async def test_channel_loss_keeps_store_and_schedules_reconnect() -> None:
    factory = _ChannelFactory()
    manager, store, _, scheduler, _ = _manager(factory)

    await manager.connect()
    channel = factory.channels[0]
    channel.push("/topic/flights", {"flightNumber": "AB123"})
    channel.drop(JetwatchChannelError("STOMP error"))
    await _drain()

    assert manager.state == ConnectionState.DISCONNECTED
    assert manager.reconnect_pending
    assert channel.closed
    assert "AB123" in store

    scheduler.advance(5.0)
    await _drain()
    assert manager.is_connected
    assert len(factory.channels) == 2
    await manager.disconnect()


@pytest.mark.asyncio
async def test_disconnect_cancels_pending_reconnect() -> None:
    factory = _ChannelFactory(failures=5)
    manager, _, _, scheduler, _ = _manager(factory)

    await manager.connect()
    await manager.disconnect()
    await manager.disconnect()

    assert scheduler.pending == []
    scheduler.advance(60.0)
    await _drain()
    assert factory.failures == 4
    assert manager.state == ConnectionState.DISCONNECTED

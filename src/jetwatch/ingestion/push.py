"""Push channel lifecycle.

Owns:
- opening the STOMP channel and its two topic subscriptions
- translating channel messages into store merges and activity entries
- the fixed-delay reconnect loop
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from pydantic import ValidationError

from jetwatch._stomp import ChannelMessage, PushChannel
from jetwatch._timers import Scheduler, TimerHandle
from jetwatch.config import JetwatchConfig
from jetwatch.models.flight import Flight, FlightEvent
from jetwatch.state.activity import ActivityLog
from jetwatch.state.events import ConnectionState
from jetwatch.state.store import StateStore

_logger = logging.getLogger(__name__)

ChannelFactory = Callable[[], Awaitable[PushChannel]]


class ConnectionManager:
    """Keeps one push channel open, reconnecting forever on failure.

    Channel failures are never raised to callers: they move the state to
    ``DISCONNECTED`` and schedule another attempt after
    ``config.reconnect_delay`` seconds. Lost messages are not retried here;
    the reconciliation poller corrects the drift.
    """

    def __init__(
        self,
        *,
        config: JetwatchConfig,
        channel_factory: ChannelFactory,
        store: StateStore,
        activity: ActivityLog,
        scheduler: Scheduler,
        on_status: Callable[[ConnectionState], None] | None = None,
    ) -> None:
        self._config = config
        self._channel_factory = channel_factory
        self._store = store
        self._activity = activity
        self._scheduler = scheduler
        self._on_status = on_status
        self._state = ConnectionState.DISCONNECTED
        self._channel: PushChannel | None = None
        self._reader: asyncio.Task[None] | None = None
        self._reconnect_handle: TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._stopped = True
        self._attempts = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Open the channel; returns ``True`` once subscribed.

        On failure a reconnect is scheduled and ``False`` is returned.
        """
        if self._state != ConnectionState.DISCONNECTED:
            return self._state == ConnectionState.CONNECTED

        self._stopped = False
        self._cancel_reconnect()
        self._attempts += 1
        self._set_state(ConnectionState.CONNECTING)
        _logger.debug("Push channel connect attempt=%d", self._attempts)

        try:
            channel = await self._channel_factory()
        except Exception as exc:
            _logger.warning("Push channel connect failed: %s", exc)
            _logger.debug("Push channel connect failure details", exc_info=True)
            if not self._stopped:
                self._handle_lost()
            return False

        if self._stopped:
            # disconnect() won the race while the handshake was in flight.
            await channel.close()
            return False

        self._attempts = 0
        self._channel = channel
        self._set_state(ConnectionState.CONNECTED)
        self._reader = self._spawn(self._read(channel))
        return True

    async def disconnect(self) -> None:
        """Tear the channel down and stop reconnecting. Safe to call repeatedly."""
        self._stopped = True
        self._cancel_reconnect()

        reader = self._reader
        self._reader = None
        pending = [task for task in self._tasks if task is not reader and not task.done()]
        for task in pending:
            task.cancel()
        if reader is not None and not reader.done():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        channel = self._channel
        self._channel = None
        if channel is not None:
            try:
                await channel.close()
            except Exception:
                _logger.debug("Push channel close failed", exc_info=True)

        self._set_state(ConnectionState.DISCONNECTED)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        self._state = state
        _logger.debug("Push channel state=%s", state.value)
        if self._on_status is not None:
            try:
                self._on_status(state)
            except Exception:
                _logger.debug("on_status callback failed", exc_info=True)

    def _cancel_reconnect(self) -> None:
        handle = self._reconnect_handle
        self._reconnect_handle = None
        if handle is not None:
            handle.cancel()

    def _handle_lost(self) -> None:
        self._set_state(ConnectionState.DISCONNECTED)
        if self._stopped or self._reconnect_handle is not None:
            return
        delay = self._config.reconnect_delay
        _logger.debug("Push channel reconnect in %.1fs", delay)
        self._reconnect_handle = self._scheduler.call_later(delay, self._on_reconnect_timer)

    def _on_reconnect_timer(self) -> None:
        self._reconnect_handle = None
        if self._stopped:
            return
        self._spawn(self.connect())

    async def _read(self, channel: PushChannel) -> None:
        try:
            async for message in channel.messages():
                self._dispatch(message)
        except Exception as exc:
            _logger.warning("Push channel dropped: %s", exc)
        else:
            _logger.warning("Push channel closed by server")

        if self._channel is channel:
            self._channel = None
        try:
            await channel.close()
        except Exception:
            _logger.debug("Push channel close failed", exc_info=True)
        if self._reader is asyncio.current_task():
            self._reader = None
        if not self._stopped:
            self._handle_lost()

    def _dispatch(self, message: ChannelMessage) -> None:
        if message.destination == self._config.flights_topic:
            self._handle_flight_update(message.body)
        elif message.destination == self._config.events_topic:
            self._handle_flight_event(message.body)
        else:
            _logger.debug("Ignoring message for destination=%s", message.destination)

    def _handle_flight_update(self, body: str) -> None:
        try:
            flight = Flight.model_validate(json.loads(body))
        except (ValueError, ValidationError):
            _logger.warning("Dropping malformed flight update: %.200s", body)
            return
        self._store.merge(flight)
        self._activity.append(flight.flight_number, flight.display_state, f"State: {flight.display_state}")

    def _handle_flight_event(self, body: str) -> None:
        try:
            event = FlightEvent.model_validate(json.loads(body))
        except (ValueError, ValidationError):
            _logger.warning("Dropping malformed flight event: %.200s", body)
            return
        self._activity.append(event.flight_number, event.label, event.message)

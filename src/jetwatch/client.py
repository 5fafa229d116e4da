"""High-level async flight operations console."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import aiohttp

from jetwatch._client import commands as _commands
from jetwatch._client.history import HistoryAggregator
from jetwatch._client.selection import SelectionController
from jetwatch._stomp import PushChannel, open_stomp_channel
from jetwatch._timers import LoopScheduler, Scheduler, TimerHandle
from jetwatch._transport import HttpTransport, Transport
from jetwatch.config import JetwatchConfig
from jetwatch.exceptions import JetwatchError, JetwatchNoHistoryError
from jetwatch.ingestion.push import ChannelFactory, ConnectionManager
from jetwatch.ingestion.reconcile import ReconciliationPoller
from jetwatch.models.flight import CommandResult, Flight, StartFlightResponse, StartJourneyResponse
from jetwatch.models.history import HistoryExport
from jetwatch.models.requests import StartFlightRequest, StartJourneyRequest
from jetwatch.render import Renderer
from jetwatch.state.activity import ActivityLog
from jetwatch.state.events import ConnectionState
from jetwatch.state.store import StateStore

_logger = logging.getLogger(__name__)


class FlightConsole:
    """Async operations console for the flight tracking backend.

    Usage::

        async with FlightConsole(config, renderer=MyRenderer()) as console:
            await console.start()
            await console.select("AB123")

    All components live on this object; nothing is held at module level.
    They are built on ``__aenter__`` and torn down on ``__aexit__``.
    """

    def __init__(
        self,
        config: JetwatchConfig | None = None,
        *,
        renderer: Renderer | None = None,
        session: aiohttp.ClientSession | None = None,
        scheduler: Scheduler | None = None,
        channel_factory: ChannelFactory | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or JetwatchConfig()
        self._renderer = renderer or Renderer()
        self._external_session = session is not None
        self._http_session = session
        self._scheduler = scheduler
        self._channel_factory = channel_factory
        self._transport_override = transport
        self._transport: Transport | None = None
        self._store: StateStore | None = None
        self._activity: ActivityLog | None = None
        self._connection: ConnectionManager | None = None
        self._poller: ReconciliationPoller | None = None
        self._selection: SelectionController | None = None
        self._history: HistoryAggregator | None = None
        self._timers: set[TimerHandle] = set()
        self._tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FlightConsole:
        config = self._config
        if self._transport_override is None and self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        if self._transport_override is not None:
            self._transport = self._transport_override
        else:
            assert self._http_session is not None  # noqa: S101
            self._transport = HttpTransport(config, self._http_session)

        scheduler = self._scheduler or LoopScheduler(asyncio.get_running_loop())
        self._scheduler = scheduler

        store = StateStore()
        store.add_listener(lambda change: self._renderer.store_changed(store, change))
        activity = ActivityLog(capacity=config.activity_log_size, on_append=self._renderer.log_appended)

        self._store = store
        self._activity = activity
        self._connection = ConnectionManager(
            config=config,
            channel_factory=self._channel_factory or self._open_channel,
            store=store,
            activity=activity,
            scheduler=scheduler,
            on_status=self._renderer.connection_status,
        )
        self._poller = ReconciliationPoller(
            transport=self._transport,
            store=store,
            scheduler=scheduler,
            mode=config.reconcile_mode,
            interval=config.effective_poll_interval,
        )
        self._selection = SelectionController(store=store, transport=self._transport, renderer=self._renderer)
        self._history = HistoryAggregator(transport=self._transport, renderer=self._renderer, activity=activity)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        if self._selection is not None:
            self._selection.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    async def start(self) -> None:
        """Open the push channel and start reconciliation.

        A failed connect is not an error: the connection manager keeps
        retrying while the poller already serves current state.
        """
        connection = self._require(self._connection)
        poller = self._require(self._poller)
        await connection.connect()
        poller.start()
        _logger.debug("Console started state=%s reconcile=%s", connection.state.value, poller.mode.value)

    async def stop(self) -> None:
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._poller is not None:
            await self._poller.stop()
        if self._connection is not None:
            await self._connection.disconnect()

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def config(self) -> JetwatchConfig:
        return self._config

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    @property
    def store(self) -> StateStore:
        return self._require(self._store)

    @property
    def activity(self) -> ActivityLog:
        return self._require(self._activity)

    @property
    def connection(self) -> ConnectionManager:
        return self._require(self._connection)

    @property
    def poller(self) -> ReconciliationPoller:
        return self._require(self._poller)

    @property
    def selection(self) -> SelectionController:
        return self._require(self._selection)

    @property
    def history(self) -> HistoryAggregator:
        return self._require(self._history)

    @property
    def connection_state(self) -> ConnectionState:
        if self._connection is None:
            return ConnectionState.DISCONNECTED
        return self._connection.state

    def flights(self) -> list[Flight]:
        return list(self.store.query_all())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require(component: Any) -> Any:
        if component is None:
            raise JetwatchError("Console not initialized. Use 'async with FlightConsole(...) as console:'")
        return component

    def _require_transport(self) -> Transport:
        transport: Transport = self._require(self._transport)
        return transport

    async def _open_channel(self) -> PushChannel:
        return await open_stomp_channel(self._config)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _schedule(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        scheduler: Scheduler = self._require(self._scheduler)
        handle: TimerHandle | None = None

        def _fire() -> None:
            self._timers.discard(handle)  # type: ignore[arg-type]
            callback()

        handle = scheduler.call_later(delay, _fire)
        self._timers.add(handle)
        return handle

    # ------------------------------------------------------------------
    # Operator commands
    # ------------------------------------------------------------------

    async def start_flight(self, request: StartFlightRequest) -> StartFlightResponse | None:
        """Start a flight workflow; details are pulled shortly afterwards."""
        return await _commands.start_flight(self, request)

    async def start_journey(self, request: StartJourneyRequest) -> StartJourneyResponse | None:
        return await _commands.start_journey(self, request)

    async def announce_delay(self, key: str, minutes: int) -> CommandResult | None:
        return await _commands.announce_delay(self, key, minutes)

    async def change_gate(self, key: str, new_gate: str) -> CommandResult | None:
        return await _commands.change_gate(self, key, new_gate)

    async def cancel_flight(self, key: str, reason: str | None = None) -> CommandResult | None:
        return await _commands.cancel_flight(self, key, reason)

    async def restart_worker(self) -> CommandResult | None:
        return await _commands.restart_worker(self)

    async def select(self, key: str) -> bool:
        """Select *key*; loaded history of another flight is dismissed."""
        if key != self.selection.selected_key:
            self.history.dismiss()
        return await self.selection.select(key)

    def clear_selection(self) -> None:
        self.history.dismiss()
        self.selection.clear()

    async def load_history(self, key: str | None = None, flight_date: str | None = None) -> bool:
        """Load both audit trails for *key* (default: the selected flight).

        When *flight_date* is omitted, the date of the held record is used.
        """
        key = key or self.selection.selected_key
        if key is None:
            self._renderer.notify("Select a flight to load its history")
            return False
        if flight_date is None:
            flight = self.store.query(key)
            if flight is not None and flight.flight_date is not None:
                flight_date = flight.flight_date.isoformat()
        await self.history.load_history(key, flight_date)
        return True

    def dismiss_history(self) -> None:
        self.history.dismiss()

    def export_history(self) -> HistoryExport | None:
        selected = self.selection.selected_key
        if selected is not None and self.history.current_key not in (None, selected):
            self._renderer.notify(f"No history loaded for {selected}")
            return None
        try:
            return self.history.export_history()
        except JetwatchNoHistoryError as exc:
            self._renderer.notify(str(exc))
            return None

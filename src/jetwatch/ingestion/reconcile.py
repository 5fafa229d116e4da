"""Periodic pull-based reconciliation.

The push channel gives no delivery guarantee, so the poller is the
correctness backstop: it re-reads backend state on a fixed period and
feeds it through the same store path as the push channel.

Two modes exist because backends differ in what they expose:

- ``snapshot``: the list-active endpoint is available; the whole store is
  replaced, which also drops flights that left the active set.
- ``per_key``: only per-flight details can be queried; every known flight
  is re-fetched and upserted. Removals cannot be discovered in this mode.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Coroutine
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from jetwatch._api.flights import fetch_active_flights, fetch_flight_details
from jetwatch._timers import Scheduler, TimerHandle
from jetwatch._transport import Transport
from jetwatch.exceptions import JetwatchError
from jetwatch.state.store import StateStore

_logger = logging.getLogger(__name__)

_SNAPSHOT_TARGET = "*"


class ReconcileMode(StrEnum):
    SNAPSHOT = "snapshot"
    PER_KEY = "per_key"


class ReconciliationPoller:
    """Runs reconciliation at start and then every *interval* seconds.

    A tick always issues a new request, even when the previous one has not
    returned. Every request takes a generation number for its target (the
    snapshot, or one flight); a response is applied only if no newer
    request for the same target has been issued since, otherwise it is
    dropped. Generations are unique across targets, so a target whose
    latest request has settled is forgotten.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        store: StateStore,
        scheduler: Scheduler,
        mode: ReconcileMode | str = ReconcileMode.SNAPSHOT,
        interval: float = 5.0,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._transport = transport
        self._store = store
        self._scheduler = scheduler
        self._mode = ReconcileMode(mode)
        self._interval = interval
        self._generation = 0
        self._issued: dict[str, int] = {}
        self._handle: TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._running = False
        self.stale_discards = 0

    @property
    def mode(self) -> ReconcileMode:
        return self._mode

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tracked_targets(self) -> int:
        return len(self._issued)

    @property
    def in_flight(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def start(self) -> None:
        """Reconcile now and schedule the recurring tick."""
        if self._running:
            return
        self._running = True
        _logger.debug("Reconciliation started mode=%s interval=%.1fs", self._mode.value, self._interval)
        self._tick()

    async def stop(self) -> None:
        self._running = False
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._issued.clear()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _tick(self) -> None:
        self._handle = None
        if not self._running:
            return
        self._spawn(self.reconcile())
        self._handle = self._scheduler.call_later(self._interval, self._tick)

    # ------------------------------------------------------------------
    # Generation tracking
    # ------------------------------------------------------------------

    def _issue(self, target: str) -> int:
        self._generation += 1
        self._issued[target] = self._generation
        return self._generation

    def _release(self, target: str, token: int) -> None:
        if self._issued.get(target) == token:
            del self._issued[target]

    def _is_current(self, target: str, token: int) -> bool:
        if self._issued.get(target) == token:
            del self._issued[target]
            return True
        self.stale_discards += 1
        _logger.debug("Discarding stale reconciliation response target=%s generation=%d", target, token)
        return False

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def reconcile(self) -> None:
        if self._mode == ReconcileMode.SNAPSHOT:
            await self.reconcile_snapshot()
        else:
            await self.reconcile_known_keys()

    async def reconcile_snapshot(self) -> bool:
        """Replace the store with the active set; ``True`` if applied."""
        token = self._issue(_SNAPSHOT_TARGET)
        try:
            flights = await fetch_active_flights(self._transport)
        except (JetwatchError, ValidationError) as exc:
            _logger.warning("Active flight refresh failed: %s", exc)
            self._release(_SNAPSHOT_TARGET, token)
            return False
        if not self._is_current(_SNAPSHOT_TARGET, token):
            return False
        self._store.replace_snapshot(flights)
        _logger.debug("Refreshed %d active flights", len(flights))
        return True

    async def reconcile_known_keys(self) -> int:
        """Re-fetch every flight currently held; returns how many were applied."""
        keys = self._store.keys()
        if not keys:
            return 0
        results = await asyncio.gather(*(self.refresh_one(key) for key in keys))
        return sum(1 for applied in results if applied)

    async def refresh_one(self, key: str) -> bool:
        token = self._issue(key)
        try:
            flight = await fetch_flight_details(self._transport, key)
        except (JetwatchError, ValidationError) as exc:
            _logger.warning("Detail refresh for %s failed: %s", key, exc)
            self._release(key, token)
            return False
        if not self._is_current(key, token):
            return False
        self._store.upsert_one(flight)
        return True

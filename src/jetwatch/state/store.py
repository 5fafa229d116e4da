"""In-memory flight store.

This is the only component allowed to hold flight records. Every write is
a whole-record replace: the backend is the single writer per flight, so a
later record strictly supersedes an earlier one in processing order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from jetwatch.models.flight import Flight
from jetwatch.state.events import ChangeKind, StoreChange

_logger = logging.getLogger(__name__)

StoreListener = Callable[[StoreChange], None]


class StateStore:
    """Per-flight map keyed by flight number.

    Each mutation emits exactly one :class:`StoreChange` to every listener,
    never one per field.
    """

    def __init__(self) -> None:
        self._flights: dict[str, Flight] = {}
        self._listeners: list[StoreListener] = []

    def add_listener(self, listener: StoreListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _emit(self, change: StoreChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.debug("Store listener failed for %s", change.kind, exc_info=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def merge(self, flight: Flight) -> None:
        """Last-write-wins upsert of a full record (push channel path)."""
        self._flights[flight.flight_number] = flight
        self._emit(StoreChange(kind=ChangeKind.MERGE, keys=frozenset({flight.flight_number})))

    def upsert_one(self, flight: Flight) -> None:
        """Replace one record after a per-flight re-fetch.

        Cannot discover removals; that is what :meth:`replace_snapshot` is for.
        """
        self._flights[flight.flight_number] = flight
        self._emit(StoreChange(kind=ChangeKind.UPSERT, keys=frozenset({flight.flight_number})))

    def replace_snapshot(self, flights: Iterable[Flight]) -> None:
        """Atomically replace the whole map with *flights*.

        Flights absent from *flights* are dropped. When a key repeats, the
        later record wins.
        """
        replacement: dict[str, Flight] = {}
        for flight in flights:
            replacement[flight.flight_number] = flight
        touched = frozenset(self._flights) | frozenset(replacement)
        self._flights = replacement
        _logger.debug("Snapshot applied: %d flights (%d keys touched)", len(replacement), len(touched))
        self._emit(StoreChange(kind=ChangeKind.SNAPSHOT, keys=touched))

    def remove(self, key: str) -> bool:
        """Drop *key*; returns ``False`` when it was not present."""
        if self._flights.pop(key, None) is None:
            return False
        self._emit(StoreChange(kind=ChangeKind.REMOVE, keys=frozenset({key})))
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, key: str) -> Flight | None:
        return self._flights.get(key)

    def query_all(self) -> Iterator[Flight]:
        """Iterate over the flights held at call time.

        Later mutations do not affect an iterator already handed out.
        """
        return iter(list(self._flights.values()))

    def keys(self) -> list[str]:
        return list(self._flights)

    def __len__(self) -> int:
        return len(self._flights)

    def __contains__(self, key: object) -> bool:
        return key in self._flights

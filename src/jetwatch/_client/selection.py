"""Detail-view selection for :class:`jetwatch.client.FlightConsole`.

Only the selected key is held here. The record itself always comes from
the store at render time, so a selection can never show a copy that has
diverged from the store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import ValidationError

from jetwatch._api.flights import fetch_flight_details
from jetwatch._transport import Transport
from jetwatch.exceptions import JetwatchError
from jetwatch.render import Renderer
from jetwatch.state.events import StoreChange
from jetwatch.state.store import StateStore

_logger = logging.getLogger(__name__)


class SelectionController:
    def __init__(self, *, store: StateStore, transport: Transport, renderer: Renderer) -> None:
        self._store = store
        self._transport = transport
        self._renderer = renderer
        self._selected: str | None = None
        self._unsubscribe: Callable[[], None] | None = store.add_listener(self._on_store_change)

    @property
    def selected_key(self) -> str | None:
        return self._selected

    async def select(self, key: str) -> bool:
        """Select *key* and refresh its details.

        The held record (if any) is rendered immediately; the refetch result
        flows back through the store. Returns ``True`` when the refetch
        succeeded.
        """
        self._selected = key
        self._render_held(key)

        try:
            flight = await fetch_flight_details(self._transport, key)
        except (JetwatchError, ValidationError) as exc:
            _logger.warning("Detail refetch for %s failed: %s", key, exc)
            if self._selected == key:
                self._render_held(key)
            return False

        self._store.merge(flight)
        return True

    def clear(self) -> None:
        self._selected = None
        self._renderer.clear_detail()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._selected = None

    def _render_held(self, key: str) -> None:
        flight = self._store.query(key)
        if flight is not None:
            self._renderer.render_detail(flight)

    def _on_store_change(self, change: StoreChange) -> None:
        key = self._selected
        if not change.touches(key):
            return
        assert key is not None  # noqa: S101
        flight = self._store.query(key)
        if flight is None:
            # Entity left the store; keep the selection so it reappears if re-added.
            self._renderer.clear_detail()
        else:
            self._renderer.render_detail(flight)

"""Render/notify interface the console core depends on.

The concrete UI is an external collaborator. It subclasses :class:`Renderer`
and overrides the notifications it cares about; every method defaults to a
no-op so a partial UI (or a headless run) works unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jetwatch.models.flight import Flight
    from jetwatch.models.history import StateTransition, WorkflowHistoryEvent
    from jetwatch.state.events import ActivityLogEntry, ConnectionState, StoreChange
    from jetwatch.state.store import StateStore


class Renderer:
    """No-op base renderer."""

    def store_changed(self, store: StateStore, change: StoreChange) -> None:
        """The flight list changed; *change* names the affected keys."""

    def connection_status(self, state: ConnectionState) -> None:
        """The push channel moved to *state*."""

    def log_appended(self, entry: ActivityLogEntry) -> None:
        """A new entry is at the head of the activity log."""

    def render_detail(self, flight: Flight) -> None:
        """Show *flight* in the detail view."""

    def clear_detail(self) -> None:
        """Hide the detail view."""

    def render_execution_history(self, key: str, events: list[WorkflowHistoryEvent]) -> None:
        """Execution-history region resolved for *key*."""

    def render_transition_history(self, key: str, transitions: list[StateTransition]) -> None:
        """Transition-history region resolved for *key*."""

    def history_failed(self, key: str, region: str, message: str) -> None:
        """One history region failed; the other region is unaffected."""

    def notify(self, message: str) -> None:
        """One-shot operator notification (backend rejections)."""

    def offer_download(self, filename: str, content: str) -> None:
        """Offer *content* to the operator as a file named *filename*."""


class LoggingRenderer(Renderer):
    """Renderer that writes every notification to a logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def store_changed(self, store: StateStore, change: StoreChange) -> None:
        if not len(store):
            self._logger.info("No active flights")
            return
        for flight in store.query_all():
            delay = f"+{flight.delay} min" if flight.delay > 0 else "on time"
            self._logger.info(
                "%-8s %-10s gate=%s %s running=%s",
                flight.flight_number,
                flight.display_state,
                flight.gate or "N/A",
                delay,
                flight.elapsed_display if flight.elapsed_time else "N/A",
            )

    def connection_status(self, state: ConnectionState) -> None:
        self._logger.info("Push channel %s", state.value)

    def log_appended(self, entry: ActivityLogEntry) -> None:
        self._logger.info("[%s] %s: %s", entry.timestamp.strftime("%H:%M:%S"), entry.subject_key, entry.message)

    def render_detail(self, flight: Flight) -> None:
        self._logger.info(
            "Detail %s state=%s route=%s gate=%s aircraft=%s delay=%s departure=%s arrival=%s",
            flight.flight_number,
            flight.display_state,
            flight.route or "N/A",
            flight.gate or "N/A",
            flight.aircraft or "N/A",
            flight.delay,
            flight.scheduled_departure.isoformat() if flight.scheduled_departure else "N/A",
            flight.scheduled_arrival.isoformat() if flight.scheduled_arrival else "N/A",
        )

    def clear_detail(self) -> None:
        self._logger.info("Detail cleared")

    def render_execution_history(self, key: str, events: list[WorkflowHistoryEvent]) -> None:
        if not events:
            self._logger.info("%s: no history events found", key)
        for event in events:
            self._logger.info("%s #%d %s [%s] %s", key, event.event_id, event.timestamp, event.category, event.description)

    def render_transition_history(self, key: str, transitions: list[StateTransition]) -> None:
        if not transitions:
            self._logger.info("%s: no state transitions found", key)
        for transition in transitions:
            self._logger.info(
                "%s %s → %s gate=%s delay=%s aircraft=%s %s",
                key,
                transition.from_label,
                transition.to_state,
                transition.gate or "N/A",
                f"{transition.delay} min" if transition.delay > 0 else "On time",
                transition.aircraft or "N/A",
                transition.detail or "",
            )

    def history_failed(self, key: str, region: str, message: str) -> None:
        self._logger.warning("%s: failed to load %s history: %s", key, region, message)

    def notify(self, message: str) -> None:
        self._logger.warning("%s", message)

    def offer_download(self, filename: str, content: str) -> None:
        self._logger.info("Export ready: %s (%d bytes)", filename, len(content))

"""On-demand audit trail loading and export."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from pydantic import ValidationError

from jetwatch._api.history import fetch_execution_history, fetch_transition_history
from jetwatch._transport import Transport
from jetwatch.exceptions import JetwatchError, JetwatchNoHistoryError
from jetwatch.models.history import HistoryExport, StateTransition, WorkflowHistoryEvent
from jetwatch.render import Renderer
from jetwatch.state.activity import ActivityLog

_logger = logging.getLogger(__name__)

EXECUTION_REGION = "execution"
TRANSITIONS_REGION = "transitions"
AUDIT_LABEL = "AUDIT"


class HistoryAggregator:
    """Loads both audit trails of one flight side by side.

    The two trails come from different subsystems and are rendered in
    separate regions; neither is merged into the other. Only the trails of
    the most recent load are cached: every load takes a new generation and
    results of an older load, even for the same key, are dropped.
    """

    def __init__(self, *, transport: Transport, renderer: Renderer, activity: ActivityLog) -> None:
        self._transport = transport
        self._renderer = renderer
        self._activity = activity
        self._generation = 0
        self._current_key: str | None = None
        self._execution: list[WorkflowHistoryEvent] | None = None
        self._transitions: list[StateTransition] | None = None

    @property
    def current_key(self) -> str | None:
        return self._current_key

    @property
    def execution_history(self) -> list[WorkflowHistoryEvent] | None:
        return self._execution

    @property
    def transition_history(self) -> list[StateTransition] | None:
        return self._transitions

    async def load_history(self, key: str, flight_date: str | None = None) -> None:
        """Fetch both trails for *key* concurrently.

        Each region is rendered as soon as its own fetch resolves; a failure
        in one region is reported through ``history_failed`` and never
        blocks the other.
        """
        self._generation += 1
        generation = self._generation
        self._current_key = key
        self._execution = None
        self._transitions = None
        await asyncio.gather(
            self._load_execution(key, flight_date, generation),
            self._load_transitions(key, flight_date, generation),
        )

    async def _load_execution(self, key: str, flight_date: str | None, generation: int) -> None:
        try:
            events = await fetch_execution_history(self._transport, key, flight_date=flight_date)
        except (JetwatchError, ValidationError) as exc:
            if self._is_current(key, generation):
                _logger.warning("Execution history for %s failed: %s", key, exc)
                self._renderer.history_failed(key, EXECUTION_REGION, str(exc))
            return
        if not self._is_current(key, generation):
            return
        self._execution = events
        self._renderer.render_execution_history(key, events)

    async def _load_transitions(self, key: str, flight_date: str | None, generation: int) -> None:
        try:
            transitions = await fetch_transition_history(self._transport, key, flight_date=flight_date)
        except (JetwatchError, ValidationError) as exc:
            if self._is_current(key, generation):
                _logger.warning("Transition history for %s failed: %s", key, exc)
                self._renderer.history_failed(key, TRANSITIONS_REGION, str(exc))
            return
        if not self._is_current(key, generation):
            return
        self._transitions = transitions
        self._renderer.render_transition_history(key, transitions)

    def _is_current(self, key: str, generation: int) -> bool:
        if self._generation == generation:
            return True
        _logger.debug("Dropping superseded history result key=%s generation=%d", key, generation)
        return False

    def dismiss(self) -> None:
        self._generation += 1
        self._current_key = None
        self._execution = None
        self._transitions = None

    def export_history(self, *, now: datetime | None = None) -> HistoryExport:
        """Offer the cached execution history as a JSON download."""
        if self._current_key is None or self._execution is None:
            raise JetwatchNoHistoryError("No execution history loaded to export")
        export = HistoryExport.from_events(self._current_key, self._execution, exported_at=now)
        self._renderer.offer_download(export.filename, export.to_json())
        self._activity.append(self._current_key, AUDIT_LABEL, "Workflow history exported")
        return export

"""Rolling activity log.

A bounded operational trace, newest entry first. It is not an audit
record; the authoritative trails are fetched on demand by the history
aggregator.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime

from jetwatch._constants import ACTIVITY_LOG_SIZE
from jetwatch.state.events import ActivityLogEntry

_logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


class ActivityLog:
    def __init__(
        self,
        *,
        capacity: int = ACTIVITY_LOG_SIZE,
        clock: Callable[[], datetime] = _now,
        on_append: Callable[[ActivityLogEntry], None] | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._entries: deque[ActivityLogEntry] = deque(maxlen=capacity)
        self._clock = clock
        self._on_append = on_append

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def append(self, subject_key: str, label: str, message: str) -> ActivityLogEntry:
        """Record an entry at the head; the oldest entry falls off when full."""
        entry = ActivityLogEntry(
            timestamp=self._clock(),
            subject_key=subject_key,
            label=label,
            message=message,
        )
        self._entries.appendleft(entry)
        _logger.debug("Activity %s [%s]: %s", subject_key, label, message)
        if self._on_append is not None:
            try:
                self._on_append(entry)
            except Exception:
                _logger.debug("on_append callback failed", exc_info=True)
        return entry

    def entries(self) -> list[ActivityLogEntry]:
        """Entries newest-first."""
        return list(self._entries)

    @property
    def latest(self) -> ActivityLogEntry | None:
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

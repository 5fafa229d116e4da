"""Timer service used for reconnect backoff and periodic reconciliation.

Components never call ``asyncio`` timers directly; they take a
:class:`Scheduler` so tests can drive time with a fake clock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Structural timer interface.

    ``call_later`` runs *callback* once after *delay* seconds on the event
    loop thread and returns a handle whose ``cancel()`` is idempotent.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

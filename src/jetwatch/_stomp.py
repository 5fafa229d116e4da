"""Internal STOMP channel runtime on top of stomp.py.

The flight backend exposes a STOMP 1.2 broker over a WebSocket. stomp.py
runs the session on its own receiver thread; frames are handed to the
asyncio loop with ``loop.call_soon_threadsafe`` and read back through
:meth:`StompChannel.messages`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import urlsplit

import stomp
from stomp.adapter.ws import WSStompConnection
from stomp.exception import StompException

from jetwatch.config import JetwatchConfig
from jetwatch.exceptions import JetwatchChannelError

_logger = logging.getLogger(__name__)

_LISTENER_NAME = "jetwatch"
_CLOSED = object()


@dataclass(frozen=True)
class ChannelMessage:
    """A MESSAGE frame reduced to what the console consumes."""

    destination: str
    body: str


class PushChannel(Protocol):
    """Structural interface of an open, subscribed push channel."""

    def messages(self) -> AsyncIterator[ChannelMessage]: ...

    async def close(self) -> None: ...


def build_ws_connection(config: JetwatchConfig) -> WSStompConnection:
    """Create an unconnected stomp.py WebSocket connection for *config*."""
    parts = urlsplit(config.ws_url)
    secure = parts.scheme == "wss"
    host = parts.hostname or "localhost"
    port = parts.port or (443 if secure else 80)
    connection = WSStompConnection(
        [(host, port)],
        ws_path=parts.path or "/",
        timeout=config.request_timeout,
        reconnect_attempts_max=1,
    )
    if secure:
        connection.set_ssl(for_hosts=[(host, port)])
    return connection


def _frame_body(frame: Any) -> str:
    body = frame.body
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body or ""


class _LoopListener(stomp.ConnectionListener):  # type: ignore[misc]
    """Forwards receiver-thread callbacks to the owning channel."""

    def __init__(self, channel: StompChannel) -> None:
        self._channel = channel

    def on_message(self, frame: Any) -> None:
        destination = frame.headers.get("destination") or self._channel.destination_for(
            frame.headers.get("subscription", "")
        )
        self._channel.deliver(ChannelMessage(destination=destination, body=_frame_body(frame)))

    def on_error(self, frame: Any) -> None:
        detail = frame.headers.get("message") or _frame_body(frame)
        self._channel.deliver(JetwatchChannelError(f"STOMP error: {detail}"))

    def on_disconnected(self) -> None:
        self._channel.deliver(_CLOSED)


class StompChannel:
    """Push channel running a stomp.py connection on its receiver thread."""

    def __init__(self, connection: Any, *, loop: asyncio.AbstractEventLoop) -> None:
        self._connection = connection
        self._loop = loop
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._subscriptions: dict[str, str] = {}
        self._closed = False
        connection.set_listener(_LISTENER_NAME, _LoopListener(self))

    @classmethod
    async def open(
        cls,
        connection: Any,
        *,
        destinations: Sequence[str],
    ) -> StompChannel:
        """Connect *connection* and subscribe to *destinations*.

        The blocking handshake runs in the default executor.
        """
        loop = asyncio.get_running_loop()
        channel = cls(connection, loop=loop)
        try:
            await loop.run_in_executor(None, channel._start, tuple(destinations))
        except (StompException, OSError) as exc:
            await channel.close()
            raise JetwatchChannelError(f"STOMP connect failed: {exc!r}") from exc
        return channel

    def _start(self, destinations: tuple[str, ...]) -> None:
        self._connection.connect(wait=True)
        for index, destination in enumerate(destinations):
            subscription_id = f"sub-{index}"
            self._subscriptions[subscription_id] = destination
            self._connection.subscribe(destination=destination, id=subscription_id, ack="auto")
            _logger.debug("STOMP subscribed id=%s destination=%s", subscription_id, destination)

    def destination_for(self, subscription_id: str) -> str:
        return self._subscriptions.get(subscription_id, "")

    def deliver(self, item: Any) -> None:
        """Queue *item* for the loop; safe to call from any thread."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    async def messages(self) -> AsyncIterator[ChannelMessage]:
        """Yield MESSAGE frames until the connection drops.

        Raises :class:`JetwatchChannelError` on an ERROR frame.
        """
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            if isinstance(item, JetwatchChannelError):
                raise item
            yield item

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._loop.run_in_executor(None, self._stop)

    def _stop(self) -> None:
        connection = self._connection
        try:
            if connection.is_connected():
                _logger.debug("STOMP disconnect requested")
                connection.disconnect()
        except StompException:
            _logger.debug("STOMP disconnect failed", exc_info=True)
        finally:
            connection.remove_listener(_LISTENER_NAME)


async def open_stomp_channel(
    config: JetwatchConfig,
    *,
    connection_factory: Callable[[JetwatchConfig], Any] = build_ws_connection,
) -> StompChannel:
    """Open the console's push channel with both topic subscriptions."""
    return await StompChannel.open(
        connection_factory(config),
        destinations=(config.flights_topic, config.events_topic),
    )

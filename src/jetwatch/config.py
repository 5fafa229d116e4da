"""Console configuration for jetwatch."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from jetwatch._constants import (
    ACTIVITY_LOG_SIZE,
    BASE_URL,
    FLIGHT_EVENTS_TOPIC,
    FLIGHTS_TOPIC,
    PER_KEY_POLL_INTERVAL_S,
    RECONNECT_DELAY_S,
    SNAPSHOT_POLL_INTERVAL_S,
    START_DETAIL_DELAY_S,
    WS_PATH,
)
from jetwatch.exceptions import JetwatchConfigError

RECONCILE_MODES: frozenset[str] = frozenset({"snapshot", "per_key"})


@dataclasses.dataclass(frozen=True)
class JetwatchConfig:
    """Console configuration.

    Parameters
    ----------
    base_url : str
        HTTP base URL of the flight API server.
    ws_path : str
        Path of the raw STOMP-over-WebSocket endpoint on the same host.
    flights_topic : str
        STOMP destination carrying full flight records.
    events_topic : str
        STOMP destination carrying free-form ``{flightNumber, state, message}``
        events.
    reconnect_delay : float
        Fixed delay in seconds before the push channel reconnects.
    poll_interval : float or None
        Reconciliation period in seconds.  ``None`` picks the mode default
        (5s for ``snapshot``, 30s for ``per_key``).
    reconcile_mode : str
        ``"snapshot"`` when the backend exposes the list-active endpoint,
        ``"per_key"`` when only per-flight details can be re-queried.
    start_detail_delay : float
        Seconds to wait after starting a flight before fetching its details.
    activity_log_size : int
        Number of entries the activity log retains.
    request_timeout : float
        Total timeout in seconds for a single HTTP request or handshake.
    """

    base_url: str = BASE_URL
    ws_path: str = WS_PATH
    flights_topic: str = FLIGHTS_TOPIC
    events_topic: str = FLIGHT_EVENTS_TOPIC
    reconnect_delay: float = RECONNECT_DELAY_S
    poll_interval: float | None = None
    reconcile_mode: str = "snapshot"
    start_detail_delay: float = START_DETAIL_DELAY_S
    activity_log_size: int = ACTIVITY_LOG_SIZE
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.reconcile_mode not in RECONCILE_MODES:
            raise JetwatchConfigError(
                f"reconcile_mode must be one of {sorted(RECONCILE_MODES)}, got {self.reconcile_mode!r}"
            )
        # A zero delay would turn reconnection into a busy loop.
        if self.reconnect_delay <= 0:
            raise JetwatchConfigError(f"reconnect_delay must be positive, got {self.reconnect_delay}")
        if self.poll_interval is not None and self.poll_interval <= 0:
            raise JetwatchConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.activity_log_size < 1:
            raise JetwatchConfigError(f"activity_log_size must be at least 1, got {self.activity_log_size}")
        if self.start_detail_delay < 0:
            raise JetwatchConfigError(f"start_detail_delay must not be negative, got {self.start_detail_delay}")

    @property
    def ws_url(self) -> str:
        """WebSocket URL derived from ``base_url`` and ``ws_path``."""
        base = self.base_url.rstrip("/")
        if base.startswith("https://"):
            base = "wss://" + base[len("https://") :]
        elif base.startswith("http://"):
            base = "ws://" + base[len("http://") :]
        return f"{base}{self.ws_path}"

    @property
    def effective_poll_interval(self) -> float:
        if self.poll_interval is not None:
            return self.poll_interval
        if self.reconcile_mode == "per_key":
            return PER_KEY_POLL_INTERVAL_S
        return SNAPSHOT_POLL_INTERVAL_S

    @classmethod
    def from_env(cls, **overrides: Any) -> JetwatchConfig:
        """Create configuration from environment variables.

        Reads optional ``JETWATCH_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        JetwatchConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "JETWATCH_BASE_URL": "base_url",
            "JETWATCH_WS_PATH": "ws_path",
            "JETWATCH_FLIGHTS_TOPIC": "flights_topic",
            "JETWATCH_EVENTS_TOPIC": "events_topic",
            "JETWATCH_RECONCILE_MODE": "reconcile_mode",
        }
        _ENV_FLOAT_MAP = {
            "JETWATCH_RECONNECT_DELAY": "reconnect_delay",
            "JETWATCH_POLL_INTERVAL": "poll_interval",
            "JETWATCH_START_DETAIL_DELAY": "start_detail_delay",
            "JETWATCH_REQUEST_TIMEOUT": "request_timeout",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise JetwatchConfigError(f"{env_key} must be a number, got {val!r}") from exc

        size_env = env.get("JETWATCH_ACTIVITY_LOG_SIZE")
        if size_env is not None and "activity_log_size" not in overrides:
            try:
                config_kwargs["activity_log_size"] = int(size_env)
            except ValueError as exc:
                raise JetwatchConfigError(f"JETWATCH_ACTIVITY_LOG_SIZE must be an integer, got {size_env!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

"""Normalization helpers.

Centralizes lenient parsing of backend values and duration formatting.
"""

from __future__ import annotations

import math
import re
from typing import Any, NamedTuple

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?")


class DurationParts(NamedTuple):
    hours: int
    minutes: int
    seconds: int


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def non_negative_or_zero(value: Any) -> int | None:
    parsed = safe_int(value)
    if parsed is None:
        return None
    return 0 if parsed < 0 else parsed


def parse_duration(value: str | None) -> DurationParts | None:
    """Split an ISO-8601 ``PT#H#M#S`` duration into whole units.

    Fractional seconds are truncated. Returns ``None`` when *value* is
    empty or does not look like a duration.
    """
    if not value:
        return None
    match = _DURATION_RE.search(value)
    if match is None:
        return None
    hours, minutes, seconds = match.groups()
    return DurationParts(
        hours=int(hours or 0),
        minutes=int(minutes or 0),
        seconds=int(float(seconds or 0)),
    )


def format_duration(value: str | None) -> str:
    """Render a backend duration for display.

    ``"PT1H2M3S"`` → ``"1h 2m"``, ``"PT5M30S"`` → ``"5m 30s"``,
    ``"PT45S"`` → ``"45s"``, empty → ``"0s"``. Unparseable input is
    returned unchanged.
    """
    if not value:
        return "0s"
    parts = parse_duration(value)
    if parts is None:
        return value
    if parts.hours > 0:
        return f"{parts.hours}h {parts.minutes}m"
    if parts.minutes > 0:
        return f"{parts.minutes}m {parts.seconds}s"
    return f"{parts.seconds}s"

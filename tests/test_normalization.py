from __future__ import annotations

import pytest

from jetwatch.ingestion.normalize import (
    DurationParts,
    format_duration,
    non_negative_or_zero,
    parse_duration,
    safe_float,
    safe_int,
    safe_str,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("PT1H2M3S", "1h 2m"),
        ("PT5M30S", "5m 30s"),
        ("PT45S", "45s"),
        ("PT12.987S", "12s"),
        ("PT2H", "2h 0m"),
        ("PT3M", "3m 0s"),
        ("", "0s"),
        (None, "0s"),
    ],
)
def test_format_duration(raw: str | None, expected: str) -> None:
    assert format_duration(raw) == expected


def test_format_duration_returns_unparseable_input_unchanged() -> None:
    assert format_duration("about an hour") == "about an hour"


def test_parse_duration_truncates_fractional_seconds() -> None:
    assert parse_duration("PT1M59.999S") == DurationParts(hours=0, minutes=1, seconds=59)


def test_parse_duration_rejects_empty() -> None:
    assert parse_duration("") is None
    assert parse_duration(None) is None


def test_safe_helpers() -> None:
    assert safe_float("1.5") == 1.5
    assert safe_float("nan") is None
    assert safe_float("abc") is None
    assert safe_int("7.9") == 7
    assert safe_int(None) is None
    assert safe_str("  A12 ") == "A12"
    assert safe_str("   ") is None


def test_non_negative_or_zero_clamps() -> None:
    assert non_negative_or_zero(-15) == 0
    assert non_negative_or_zero("30") == 30
    assert non_negative_or_zero(None) is None

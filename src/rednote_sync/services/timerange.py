"""Parsing of user-entered time bounds for the note counting panel.

Users type either a 13-digit millisecond timestamp (what the date picker
produces) or a ``YYYY-MM-DD HH:MM:SS`` / ISO 8601 string.  Naive datetimes
are interpreted in local time, the way the panel's date picker shows them.
"""

from __future__ import annotations

import re
from datetime import datetime

from rednote_sync.core.exceptions import ValidationError

_MS_PATTERN = re.compile(r"^\d{12,}$")


def parse_datetime_to_ms(text: str | None) -> int:
    """Convert ``text`` to epoch milliseconds.

    Returns:
        Epoch milliseconds, or ``0`` when ``text`` is empty or unparsable.

    >>> parse_datetime_to_ms("1769616000000")
    1769616000000
    """
    value = (text or "").strip()
    if not value:
        return 0
    if _MS_PATTERN.match(value):
        return int(value)
    iso_like = value if "T" in value else value.replace(" ", "T", 1)
    if iso_like.endswith("Z"):
        iso_like = iso_like[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(iso_like)
    except ValueError:
        return 0
    # Naive datetimes: .timestamp() uses local time.
    return int(parsed.timestamp() * 1000)


def build_time_range(start: str | None, end: str | None) -> tuple[int, int]:
    """Parse and validate a ``(start, end)`` pair of user-entered bounds.

    Raises:
        ValidationError: If a bound is missing or unparsable, or if
            ``end`` is before ``start``.
    """
    start_ms = parse_datetime_to_ms(start)
    end_ms = parse_datetime_to_ms(end)
    if not start_ms or not end_ms:
        raise ValidationError(
            "Enter valid times, e.g. 2026-01-29T00:00:00 or a 13-digit millisecond timestamp",
            field="time_range",
        )
    if end_ms < start_ms:
        raise ValidationError("end_time must be >= start_time", field="time_range")
    return start_ms, end_ms


def format_ms(value: object) -> str:
    """Render epoch milliseconds as ``local time (ms)``, or ``-`` when unusable."""
    try:
        ms = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "-"
    if not ms > 0:
        return "-"
    try:
        return f"{datetime.fromtimestamp(ms / 1000):%Y-%m-%d %H:%M:%S} ({int(ms)})"
    except (OverflowError, OSError, ValueError):
        return str(value)

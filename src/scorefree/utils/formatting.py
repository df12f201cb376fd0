"""Display helpers for catalog durations and view counts."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

_DURATION_PATTERN = re.compile(r"^P(?:(?P<days>\d+)D)?T?(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?$")
_ONE_DECIMAL = Decimal("0.1")


def _duration_parts(duration: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """Split a compact ISO-8601 duration into ``(hours, minutes, seconds)``.

    Days are folded into hours. Returns ``None`` for empty or unparseable input.
    """

    if not duration:
        return None

    match = _DURATION_PATTERN.match(duration.strip().upper())
    if match is None:
        return None

    days = int(match.group("days") or 0)
    hours = int(match.group("hours") or 0) + days * 24
    minutes = int(match.group("minutes") or 0)
    seconds = int(match.group("seconds") or 0)
    return hours, minutes, seconds


def parse_duration_seconds(duration: Optional[str]) -> int:
    """Return the total number of seconds in an ISO-8601 duration such as ``PT4M13S``."""

    parts = _duration_parts(duration)
    if parts is None:
        return 0
    hours, minutes, seconds = parts
    return hours * 3600 + minutes * 60 + seconds


def format_duration(duration: Optional[str]) -> str:
    """Convert ``PT#H#M#S`` into ``H:MM:SS`` (or ``M:SS`` under an hour).

    >>> format_duration("PT1H5M9S")
    '1:05:09'
    >>> format_duration("PT45S")
    '0:45'
    """

    parts = _duration_parts(duration)
    if parts is None:
        return "0:00"

    hours, minutes, seconds = parts
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def _one_decimal(count: int, unit: int) -> Decimal:
    # Ties round up: 2250 renders as 2.3K.
    return (Decimal(count) / unit).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def format_view_count(count: int) -> str:
    """Render a view count as ``#.#M views``, ``#.#K views`` or ``# views``."""

    if count >= 1_000_000:
        return f"{_one_decimal(count, 1_000_000)}M views"
    if count >= 1_000:
        return f"{_one_decimal(count, 1_000)}K views"
    return f"{count} views"


__all__ = ["format_duration", "format_view_count", "parse_duration_seconds"]

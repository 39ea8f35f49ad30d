"""Conversion between millisecond offsets and ``HH:MM:SS.mmm`` strings."""

from __future__ import annotations

import re

_INT_RE = re.compile(r"\s*(\d+)")
_FLOAT_RE = re.compile(r"\s*(\d+\.?\d*|\.\d+)")


def milliseconds_to_time_string(ms: int | float | None) -> str:
    """Format milliseconds as HH:MM:SS.mmm.

    Only whole seconds are kept, so the fraction is always ``.000``.
    """
    total_seconds = int((ms or 0) // 1000)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return "{:02d}:{:02d}:{:06.3f}".format(hours, minutes, seconds)


def time_string_to_milliseconds(time_str: str | None) -> int:
    """Parse HH:MM:SS.sss into milliseconds.

    Missing or unparseable components count as zero; this never raises.
    """
    parts = (time_str or "").split(":")
    hours = _leading_number(parts, 0, _INT_RE, int)
    minutes = _leading_number(parts, 1, _INT_RE, int)
    seconds = _leading_number(parts, 2, _FLOAT_RE, float)
    return int(round((hours * 3600 + minutes * 60 + seconds) * 1000))


def _leading_number(parts: list[str], index: int, pattern: re.Pattern, cast):
    if index >= len(parts):
        return 0
    match = pattern.match(parts[index])
    if not match:
        return 0
    return cast(match.group(1))

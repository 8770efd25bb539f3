"""Duration resolution.

Intervals and timeouts may be written as ISO 8601 durations (``PT30S``,
``P1M``), as clock strings (``01:30:00``, ``2.06:00:00``) or as a plain number
of milliseconds. Everything is resolved to milliseconds before a timer is armed.
"""

from __future__ import annotations

import math
import re
from typing import Union

import isodate

from recurra.domain.errors import DurationError

DurationSpec = Union[str, int, float]

MS_PER_SECOND = 1000.0
MS_PER_DAY = 86_400_000.0
DAYS_PER_YEAR = 365.2425  # mean Gregorian year
DAYS_PER_MONTH = DAYS_PER_YEAR / 12

_CLOCK_RE = re.compile(
    r"^(?:(?P<days>\d+)\.)?(?P<hours>\d+):(?P<minutes>\d{1,2})"
    r"(?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d+))?)?$"
)


def _from_clock(match: re.Match) -> float:
    days = int(match.group("days") or 0)
    hours = int(match.group("hours"))
    minutes = int(match.group("minutes"))
    seconds = float(f"{match.group('seconds') or 0}.{match.group('fraction') or 0}")
    total_seconds = ((days * 24 + hours) * 60 + minutes) * 60 + seconds
    return total_seconds * MS_PER_SECOND


def _from_iso8601(text: str) -> float:
    try:
        parsed = isodate.parse_duration(text)
    except (isodate.ISO8601Error, ValueError) as e:
        raise DurationError(f"Invalid duration: {text!r}") from e

    if isinstance(parsed, isodate.Duration):
        # Calendar units have no fixed length; use Gregorian averages
        months = float(parsed.years) * 12 + float(parsed.months)
        return months * DAYS_PER_MONTH * MS_PER_DAY + parsed.tdelta.total_seconds() * MS_PER_SECOND
    return parsed.total_seconds() * MS_PER_SECOND


def resolve_duration(value: DurationSpec) -> float:
    """Resolve a duration specification to milliseconds

    Args:
        value: ISO 8601 duration, clock string, or number of milliseconds

    Returns:
        Duration in milliseconds

    Raises:
        DurationError: If the value cannot be parsed or is negative
    """
    if isinstance(value, bool):
        raise DurationError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        millis = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise DurationError("Duration must not be empty")
        clock = _CLOCK_RE.match(text)
        if clock:
            millis = _from_clock(clock)
        elif text.upper().startswith(("P", "-P")):
            millis = _from_iso8601(text.upper())
        else:
            try:
                millis = float(text)
            except ValueError as e:
                raise DurationError(f"Invalid duration: {value!r}") from e
    else:
        raise DurationError(f"Unsupported duration type: {type(value).__name__}")

    if not math.isfinite(millis) or millis < 0:
        raise DurationError(f"Duration must be non-negative: {value!r}")
    return millis

"""
Wall-clock arithmetic on ``HH:MM`` strings.

All scheduling arithmetic works on integer minutes since midnight; the
string form only exists at the boundary.
"""

import re
from datetime import date as date_type

from .exceptions import InvalidDurationError, InvalidIntervalError, MalformedTimeError

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^([0-9]{2}):([0-9]{2})$")


def to_minutes(value: str) -> int:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    Raises:
        MalformedTimeError: If the string does not match ``HH:MM`` or the
            hour/minute components are out of range.
    """
    if not isinstance(value, str):
        raise MalformedTimeError(f"Time must be an 'HH:MM' string, got {value!r}")

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise MalformedTimeError(f"Time must match 'HH:MM', got {value!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise MalformedTimeError(f"Time out of range: {value!r}")

    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidIntervalError(f"{minutes} minutes is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, duration: int) -> str:
    """
    Add a positive duration to a wall-clock time.

    Used to derive an appointment's end time from its start time and the
    service duration. Results that would reach or cross midnight are
    rejected instead of wrapping.

    Raises:
        MalformedTimeError: If ``value`` is not a valid time.
        InvalidDurationError: If ``duration`` is not positive.
        InvalidIntervalError: If the result falls on the next day.
    """
    if duration <= 0:
        raise InvalidDurationError(f"Duration must be greater than zero, got {duration}")

    total = to_minutes(value) + duration
    if total >= MINUTES_PER_DAY:
        raise InvalidIntervalError(
            f"{value} + {duration} min crosses midnight"
        )
    return format_minutes(total)


def overlaps(a, b) -> bool:
    """Half-open overlap test: touching intervals do not overlap."""
    return a.start < b.end and b.start < a.end


def weekday_of(day: date_type) -> int:
    """Return the weekday of ``day`` with 0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7

"""
Domain-specific exception hierarchy for the clinic scheduling core.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class MalformedTimeError(SchedulingError, ValueError):
    """Raised when a wall-clock time is not a valid ``HH:MM`` string."""


class InvalidDurationError(SchedulingError, ValueError):
    """Raised when a duration or slot step is not a positive number of minutes."""


class InvalidIntervalError(SchedulingError, ValueError):
    """Raised when an interval is empty, reversed or crosses midnight."""


class InvalidSessionCountError(SchedulingError, ValueError):
    """Raised when session accounting receives inconsistent counts."""


class UnknownServiceError(SchedulingError, LookupError):
    """Raised when a service id is not part of the catalog."""


class AvailabilitySourceError(SchedulingError):
    """Raised when schedules, leave or bookings cannot be read."""

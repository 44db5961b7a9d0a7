"""
Domain models for clinic schedules, bookings and package sessions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pendulum import Date

from .exceptions import InvalidDurationError, InvalidIntervalError, InvalidSessionCountError
from .timeutils import MINUTES_PER_DAY, format_minutes, overlaps, to_minutes


@dataclass(frozen=True)
class Interval:
    """
    Immutable half-open interval ``[start, end)`` on a single calendar day.

    Start and end are minutes since midnight.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidIntervalError(
                f"Start {self._fmt(self.start)} must be before end {self._fmt(self.end)}"
            )
        if self.start < 0 or self.end >= MINUTES_PER_DAY:
            raise InvalidIntervalError(
                f"Interval {self.start}-{self.end} does not fit into a single day"
            )

    @staticmethod
    def _fmt(minutes: int) -> str:
        if 0 <= minutes < MINUTES_PER_DAY:
            return format_minutes(minutes)
        return f"{minutes}min"

    @classmethod
    def from_strings(cls, start: str, end: str) -> "Interval":
        """Build an interval from two ``HH:MM`` strings."""
        return cls(start=to_minutes(start), end=to_minutes(end))

    @property
    def start_time(self) -> str:
        return format_minutes(self.start)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        """Check if this interval overlaps with another (touching is not overlap)."""
        return overlaps(self, other)

    def contains(self, other: "Interval") -> bool:
        """Check if ``other`` lies entirely within this interval."""
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "Interval") -> "Interval | None":
        """
        Calculate the intersection of two intervals.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None
        return Interval(start=max(self.start, other.start), end=min(self.end, other.end))

    def __str__(self) -> str:
        return f"{self.start_time} - {self.end_time}"


def merge_intervals(intervals: List[Interval]) -> List[Interval]:
    """
    Merge overlapping or touching intervals.

    Example: [09:00-12:00, 12:00-17:00] -> [09:00-17:00]
    """
    if not intervals:
        return []

    sorted_intervals = sorted(intervals, key=lambda i: i.start)
    merged: List[Interval] = [sorted_intervals[0]]

    for current in sorted_intervals[1:]:
        last = merged[-1]
        if current.start <= last.end:
            merged[-1] = Interval(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class PackageStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class StaffSchedule:
    """
    One working window of a staff member on a weekday (0=Sunday ... 6=Saturday),
    with an optional break inside it.
    """
    staff_id: str
    day_of_week: int
    working: Interval
    break_interval: Optional[Interval] = None
    is_active: bool = True

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")


@dataclass(frozen=True)
class StaffLeave:
    """Whole-day leave of a staff member, inclusive on both ends."""
    staff_id: str
    start_date: Date
    end_date: Date
    is_approved: bool = False
    reason: str = ""

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise InvalidIntervalError(
                f"Leave ends ({self.end_date}) before it starts ({self.start_date})"
            )

    def covers(self, day: Date) -> bool:
        """Check if the leave covers the given calendar day."""
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class Booking:
    """
    An interval occupied by an existing appointment.

    ``staff_id`` and ``room_id`` identify what the booking blocks.
    """
    appointment_id: str
    interval: Interval
    staff_id: Optional[str] = None
    room_id: Optional[str] = None


@dataclass
class Appointment:
    appointment_id: str
    patient_id: str
    service_id: str
    staff_id: str
    room_id: str
    scheduled_date: Date
    interval: Interval
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    package_id: Optional[str] = None
    notes: str = ""

    @property
    def is_blocking(self) -> bool:
        """Every status except CANCELLED keeps the slot occupied."""
        return self.status != AppointmentStatus.CANCELLED

    def to_booking(self) -> Booking:
        return Booking(
            appointment_id=self.appointment_id,
            interval=self.interval,
            staff_id=self.staff_id,
            room_id=self.room_id,
        )


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class Service:
    """
    Catalog entry. ``session_count`` is how many billable sessions one unit
    represents ("10 X + 1 X gratis" -> 11).
    """
    service_id: str
    name: str
    duration_minutes: int
    session_count: int = 1
    is_active: bool = True

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidDurationError(
                f"Service {self.service_id} needs a positive duration, got {self.duration_minutes}"
            )
        if self.session_count < 1:
            raise InvalidSessionCountError(
                f"Service {self.service_id} needs at least one session, got {self.session_count}"
            )


@dataclass
class PackageItem:
    """
    A service sold within a package.

    Invariant: session_count is a multiple of the service's session_count.
    """
    item_id: str
    service: Service
    session_count: int
    completed_count: int = 0

    def __post_init__(self):
        if self.session_count < 0 or self.completed_count < 0:
            raise InvalidSessionCountError(
                f"Package item {self.item_id} has negative session counts"
            )
        if self.session_count % self.service.session_count != 0:
            raise InvalidSessionCountError(
                f"Package item {self.item_id}: {self.session_count} sessions is not a "
                f"multiple of {self.service.session_count} per unit"
            )

    @classmethod
    def for_units(cls, item_id: str, service: Service, units: int) -> "PackageItem":
        """Create a package item for ``units`` purchased units of ``service``."""
        if units < 0:
            raise InvalidSessionCountError(f"Units purchased must not be negative, got {units}")
        return cls(
            item_id=item_id,
            service=service,
            session_count=units * service.session_count,
        )

    @property
    def units(self) -> int:
        return self.session_count // self.service.session_count


class ConflictKind(str, Enum):
    OUTSIDE_HOURS = "OUTSIDE_HOURS"
    ON_BREAK = "ON_BREAK"
    STAFF_LEAVE = "STAFF_LEAVE"
    STAFF_DOUBLE_BOOK = "STAFF_DOUBLE_BOOK"
    ROOM_DOUBLE_BOOK = "ROOM_DOUBLE_BOOK"


@dataclass(frozen=True)
class Conflict:
    """
    Why a proposed interval cannot be booked.

    ``interval`` is the conflicting interval: the existing booking, the
    break, or the proposed interval itself for hours and leave.
    """
    kind: ConflictKind
    interval: Interval
    appointment_id: Optional[str] = None
    staff_id: Optional[str] = None
    room_id: Optional[str] = None

    @property
    def is_staff_check(self) -> bool:
        return self.kind in (
            ConflictKind.OUTSIDE_HOURS,
            ConflictKind.ON_BREAK,
            ConflictKind.STAFF_LEAVE,
        )

    def format_display(self) -> str:
        """Format the conflict for display."""
        messages = {
            ConflictKind.OUTSIDE_HOURS: "Außerhalb der Arbeitszeit",
            ConflictKind.ON_BREAK: "Während der Pause",
            ConflictKind.STAFF_LEAVE: "Mitarbeiter im Urlaub",
            ConflictKind.STAFF_DOUBLE_BOOK: "Mitarbeiter bereits gebucht",
            ConflictKind.ROOM_DOUBLE_BOOK: "Raum bereits belegt",
        }
        text = f"{messages[self.kind]} ({self.interval} Uhr)"
        if self.appointment_id:
            text += f" – Termin {self.appointment_id}"
        return text


@dataclass(frozen=True)
class SchedulingRules:
    """
    Explicit scheduling configuration handed to the checker and enumerator.
    """
    slot_interval_minutes: int = 30
    merge_adjacent_shifts: bool = False

    def __post_init__(self):
        if self.slot_interval_minutes <= 0:
            raise InvalidDurationError(
                f"slot_interval_minutes must be greater than zero, got {self.slot_interval_minutes}"
            )

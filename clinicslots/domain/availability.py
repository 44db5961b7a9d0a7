"""
Read-only view on persisted schedules, leave and bookings.

The scheduling core only depends on the ``AvailabilitySource`` protocol so
that it can run against the REST backend, a data file or an in-memory fake.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from pendulum import Date

from .models import Booking, Interval, Room, SchedulingRules, Service, merge_intervals
from .timeutils import weekday_of

logger = logging.getLogger(__name__)


class AvailabilitySource(Protocol):
    """Protocol describing the reads the scheduling core needs."""

    def get_working_intervals(self, staff_id: str, weekday: int) -> Sequence[Interval]:
        """Return working windows in definition order; empty if the staff member is off."""

    def get_break_intervals(self, staff_id: str, weekday: int) -> Sequence[Interval]:
        """Return break windows for the weekday."""

    def is_on_leave(self, staff_id: str, day: Date) -> bool:
        """Return True if approved leave covers the day."""

    def get_booked_intervals(
        self,
        day: Date,
        staff_id: Optional[str] = None,
        room_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> Sequence[Booking]:
        """
        Return non-cancelled bookings on ``day`` held by ``staff_id`` or in
        ``room_id``, without ``exclude_appointment_id``.
        """


class ClinicDirectory(Protocol):
    """Catalog lookups used by the booking service."""

    def get_service(self, service_id: str) -> Optional[Service]:
        """Return the catalog service or None."""

    def get_rooms(self) -> Sequence[Room]:
        """Return all rooms."""


def effective_breaks(working: Sequence[Interval], breaks: Sequence[Interval]) -> List[Interval]:
    """
    Clip break intervals to working time.

    Breaks only count inside working time; a break lying completely outside
    every working interval is dropped.
    """
    clipped: List[Interval] = []
    for break_interval in breaks:
        parts = [
            part for part in (w.intersect(break_interval) for w in working)
            if part is not None
        ]
        if not parts:
            logger.warning("Ignoring break %s outside working hours", break_interval)
            continue
        clipped.extend(parts)
    return clipped


@dataclass(frozen=True)
class DayAvailability:
    """
    Snapshot of everything needed to judge intervals on one day.

    Fetched once per check so that a slot listing costs one round of reads.
    """
    day: Date
    staff_id: Optional[str]
    room_id: Optional[str]
    working: Tuple[Interval, ...]
    breaks: Tuple[Interval, ...]
    on_leave: bool
    bookings: Tuple[Booking, ...]

    @classmethod
    def fetch(
        cls,
        source: AvailabilitySource,
        day: Date,
        *,
        staff_id: Optional[str] = None,
        room_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
        rules: Optional[SchedulingRules] = None,
        with_bookings: bool = True,
    ) -> "DayAvailability":
        """
        Read the snapshot from ``source``.

        Source failures propagate unchanged; a failed read never turns into
        "fully available".
        """
        rules = rules or SchedulingRules()
        working: List[Interval] = []
        breaks: List[Interval] = []
        on_leave = False

        if staff_id is not None:
            weekday = weekday_of(day)
            working = list(source.get_working_intervals(staff_id, weekday))
            if rules.merge_adjacent_shifts:
                working = merge_intervals(working)
            breaks = effective_breaks(working, source.get_break_intervals(staff_id, weekday))
            on_leave = source.is_on_leave(staff_id, day)

        bookings: Sequence[Booking] = ()
        if with_bookings and (staff_id is not None or room_id is not None):
            bookings = source.get_booked_intervals(
                day,
                staff_id=staff_id,
                room_id=room_id,
                exclude_appointment_id=exclude_appointment_id,
            )

        logger.debug(
            "Fetched availability for %s staff=%s room=%s: %d working, %d breaks, leave=%s, %d bookings",
            day, staff_id, room_id, len(working), len(breaks), on_leave, len(bookings),
        )

        return cls(
            day=day,
            staff_id=staff_id,
            room_id=room_id,
            working=tuple(working),
            breaks=tuple(breaks),
            on_leave=on_leave,
            bookings=tuple(sorted(bookings, key=lambda b: (b.interval.start, b.interval.end))),
        )

"""
Conflict detection for proposed appointment intervals.

Pure domain logic: everything is read through an ``AvailabilitySource``.
"""

import logging
from typing import List, Optional

from pendulum import Date

from .availability import AvailabilitySource, DayAvailability
from .models import Conflict, ConflictKind, Interval, SchedulingRules

logger = logging.getLogger(__name__)


class ConflictChecker:
    """
    Decides whether a proposed interval can be booked.

    Algorithm:
    1. Read one ``DayAvailability`` snapshot for the day
    2. Staff checks: containment in a single working interval, breaks, leave
    3. Booking checks: every overlapping booking of the staff member or room
    4. Report all conflicts, never just the first

    Conflicts are returned as values. Bookings that merely touch the proposed
    interval (end == start) do not conflict.
    """

    def __init__(self, source: AvailabilitySource, rules: Optional[SchedulingRules] = None):
        self.source = source
        self.rules = rules or SchedulingRules()

    def validate_appointment_time(self, staff_id: str, day: Date, interval: Interval) -> bool:
        """
        Check the proposed interval against the staff member's working hours,
        breaks and leave only.

        Returns:
            True if none of the staff checks produced a conflict
        """
        snapshot = DayAvailability.fetch(
            self.source, day, staff_id=staff_id, rules=self.rules, with_bookings=False
        )
        return not self.staff_conflicts(snapshot, interval)

    def check_time_conflict(
        self,
        day: Date,
        interval: Interval,
        room_id: Optional[str] = None,
        staff_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Conflict]:
        """
        Collect every reason the interval cannot be booked.

        Args:
            day: Calendar day of the appointment
            interval: Proposed interval
            room_id: Room to check for double-booking
            staff_id: Staff member to check for hours, breaks, leave and double-booking
            exclude_appointment_id: Appointment being edited, ignored as a booking

        Returns:
            Staff conflicts first, then booking conflicts in chronological order.
            An empty list means the interval is free.
        """
        snapshot = DayAvailability.fetch(
            self.source,
            day,
            staff_id=staff_id,
            room_id=room_id,
            exclude_appointment_id=exclude_appointment_id,
            rules=self.rules,
        )
        conflicts = self.evaluate(snapshot, interval)

        if conflicts:
            logger.debug(
                "%d conflict(s) for %s on %s: %s",
                len(conflicts), interval, day, [c.kind.value for c in conflicts],
            )
        return conflicts

    def evaluate(self, snapshot: DayAvailability, interval: Interval) -> List[Conflict]:
        """Check an interval against an already fetched snapshot."""
        return self.staff_conflicts(snapshot, interval) + self.booking_conflicts(snapshot, interval)

    def staff_conflicts(self, snapshot: DayAvailability, interval: Interval) -> List[Conflict]:
        if snapshot.staff_id is None:
            return []

        conflicts: List[Conflict] = []
        staff_id = snapshot.staff_id

        # Working intervals are not assumed contiguous: one must hold it all.
        if not any(working.contains(interval) for working in snapshot.working):
            conflicts.append(
                Conflict(kind=ConflictKind.OUTSIDE_HOURS, interval=interval, staff_id=staff_id)
            )

        for break_interval in snapshot.breaks:
            if break_interval.overlaps(interval):
                conflicts.append(
                    Conflict(kind=ConflictKind.ON_BREAK, interval=break_interval, staff_id=staff_id)
                )

        if snapshot.on_leave:
            conflicts.append(
                Conflict(kind=ConflictKind.STAFF_LEAVE, interval=interval, staff_id=staff_id)
            )

        return conflicts

    def booking_conflicts(self, snapshot: DayAvailability, interval: Interval) -> List[Conflict]:
        conflicts: List[Conflict] = []

        for booking in snapshot.bookings:
            if not booking.interval.overlaps(interval):
                continue

            if snapshot.staff_id is not None and booking.staff_id == snapshot.staff_id:
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.STAFF_DOUBLE_BOOK,
                        interval=booking.interval,
                        appointment_id=booking.appointment_id,
                        staff_id=booking.staff_id,
                        room_id=booking.room_id,
                    )
                )

            if snapshot.room_id is not None and booking.room_id == snapshot.room_id:
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.ROOM_DOUBLE_BOOK,
                        interval=booking.interval,
                        appointment_id=booking.appointment_id,
                        staff_id=booking.staff_id,
                        room_id=booking.room_id,
                    )
                )

        return conflicts

"""
Application services for booking checks and slot listings.

The service accepts the ``HH:MM`` strings and ids the outer layers work
with, derives end times from service durations and delegates the actual
decisions to the domain-level ``ConflictChecker`` and ``SlotEnumerator``.

``check_booking`` is an advisory pre-check: two concurrent requests can both
pass it against the same state, so the persistence layer must still enforce
an exclusion constraint on (staff, date, interval) and (room, date, interval)
when the appointment is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from pendulum import Date

from ..domain.availability import AvailabilitySource, ClinicDirectory, DayAvailability
from ..domain.conflict_checker import ConflictChecker
from ..domain.exceptions import UnknownServiceError
from ..domain.models import Conflict, Interval, PackageItem, SchedulingRules, Service
from ..domain.sessions import remaining_sessions
from ..domain.slot_enumerator import SlotEnumerator
from ..domain.timeutils import add_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingCheck:
    """Outcome of a booking pre-check."""
    start_time: str
    end_time: str
    is_valid_time: bool
    conflicts: List[Conflict] = field(default_factory=list)
    sessions_remaining: Optional[int] = None

    @property
    def is_bookable(self) -> bool:
        if self.sessions_remaining is not None and self.sessions_remaining <= 0:
            return False
        return self.is_valid_time and not self.conflicts


@dataclass(frozen=True)
class AvailabilityResult:
    """Staff members and rooms free for a proposed time."""
    start_time: str
    end_time: str
    available_staff: List[str] = field(default_factory=list)
    available_rooms: List[str] = field(default_factory=list)


class BookingService:
    """
    Orchestrates availability reads and scheduling decisions.

    Dependency inversion toward the ``AvailabilitySource`` and
    ``ClinicDirectory`` protocols makes it easy to plug in the REST backend,
    a data file or an in-memory fake in tests.
    """

    def __init__(
        self,
        source: AvailabilitySource,
        directory: ClinicDirectory,
        rules: Optional[SchedulingRules] = None,
    ) -> None:
        self._directory = directory
        self._checker = ConflictChecker(source, rules)
        self._enumerator = SlotEnumerator(self._checker)

    @property
    def rules(self) -> SchedulingRules:
        return self._checker.rules

    def get_service(self, service_id: str) -> Service:
        """Look up a catalog service, failing for unknown ids."""
        service = self._directory.get_service(service_id)
        if service is None:
            raise UnknownServiceError(f"Unknown service: {service_id}")
        return service

    def check_booking(
        self,
        *,
        day: Date,
        start_time: str,
        service_id: str,
        staff_id: str,
        room_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
        package_item: Optional[PackageItem] = None,
        booked_sessions: int = 0,
    ) -> BookingCheck:
        """
        Validate a proposed appointment before it is persisted.

        Args:
            day: Appointment date
            start_time: Start as ``HH:MM``
            service_id: Catalog service; its duration gives the end time
            staff_id: Staff member providing the service
            room_id: Room to check for double-booking
            exclude_appointment_id: Appointment being edited
            package_item: Package item the appointment draws from, if any
            booked_sessions: Non-cancelled appointments already booked on it

        Returns:
            BookingCheck with the derived end time and every conflict found
        """
        service = self.get_service(service_id)
        end_time = add_minutes(start_time, service.duration_minutes)
        interval = Interval.from_strings(start_time, end_time)

        # One read serves both the time validation and the conflict list.
        snapshot = DayAvailability.fetch(
            self._checker.source,
            day,
            staff_id=staff_id,
            room_id=room_id,
            exclude_appointment_id=exclude_appointment_id,
            rules=self.rules,
        )
        staff_conflicts = self._checker.staff_conflicts(snapshot, interval)
        conflicts = staff_conflicts + self._checker.booking_conflicts(snapshot, interval)

        sessions_left = None
        if package_item is not None:
            sessions_left = remaining_sessions(package_item, booked_sessions)

        result = BookingCheck(
            start_time=start_time,
            end_time=end_time,
            is_valid_time=not staff_conflicts,
            conflicts=conflicts,
            sessions_remaining=sessions_left,
        )
        logger.info(
            "Booking check %s %s-%s staff=%s room=%s: %s",
            day, start_time, end_time, staff_id, room_id,
            "bookable" if result.is_bookable else f"rejected ({len(conflicts)} conflict(s))",
        )
        return result

    def check_availability(
        self,
        *,
        day: Date,
        start_time: str,
        duration_minutes: int,
        staff_ids: Sequence[str],
        room_ids: Optional[Sequence[str]] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Find which staff members and active rooms are free for a proposed time.

        Args:
            staff_ids: Staff members to consider
            room_ids: Rooms to consider; defaults to every active room
        """
        end_time = add_minutes(start_time, duration_minutes)
        interval = Interval.from_strings(start_time, end_time)

        available_staff = [
            staff_id for staff_id in staff_ids
            if not self._checker.check_time_conflict(
                day, interval, staff_id=staff_id, exclude_appointment_id=exclude_appointment_id
            )
        ]

        rooms = [room for room in self._directory.get_rooms() if room.is_active]
        if room_ids is not None:
            wanted = set(room_ids)
            rooms = [room for room in rooms if room.room_id in wanted]

        available_rooms = [
            room.room_id for room in rooms
            if not self._checker.check_time_conflict(
                day, interval, room_id=room.room_id, exclude_appointment_id=exclude_appointment_id
            )
        ]

        return AvailabilityResult(
            start_time=start_time,
            end_time=end_time,
            available_staff=available_staff,
            available_rooms=available_rooms,
        )

    def available_slots(
        self,
        *,
        day: Date,
        staff_id: str,
        service_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        interval_minutes: Optional[int] = None,
    ) -> List[str]:
        """
        List bookable start times for a staff member.

        The duration comes from ``duration_minutes`` or, if omitted, from the
        catalog entry of ``service_id``.
        """
        if duration_minutes is None:
            if service_id is None:
                raise ValueError("Either service_id or duration_minutes is required")
            duration_minutes = self.get_service(service_id).duration_minutes

        return list(
            self._enumerator.get_available_time_slots(
                day, staff_id, duration_minutes, interval_minutes
            )
        )

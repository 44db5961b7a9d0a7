"""
In-memory availability source, optionally loaded from a YAML/JSON data file.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import yaml
from pendulum import Date

from ..domain.exceptions import AvailabilitySourceError
from ..domain.models import (
    Appointment,
    Booking,
    Interval,
    Room,
    Service,
    StaffLeave,
    StaffSchedule,
)
from .records import (
    parse_appointment,
    parse_leave,
    parse_records,
    parse_room,
    parse_schedule,
    parse_service,
)

logger = logging.getLogger(__name__)


class InMemoryAvailabilitySource:
    """
    Availability source over plain lists of domain objects.

    Used by the CLI with a data file and as the fake source in tests. It
    follows the same contract as the backend: inactive schedule rows are
    ignored, only approved leave counts, cancelled appointments free their
    slot.
    """

    def __init__(
        self,
        schedules: Optional[Iterable[StaffSchedule]] = None,
        leaves: Optional[Iterable[StaffLeave]] = None,
        appointments: Optional[Iterable[Appointment]] = None,
        rooms: Optional[Iterable[Room]] = None,
        services: Optional[Iterable[Service]] = None,
    ):
        self.schedules: List[StaffSchedule] = list(schedules or [])
        self.leaves: List[StaffLeave] = list(leaves or [])
        self.appointments: List[Appointment] = list(appointments or [])
        self.rooms: List[Room] = list(rooms or [])
        self.services: List[Service] = list(services or [])

    @classmethod
    def from_file(cls, data_path: Path) -> "InMemoryAvailabilitySource":
        """
        Load clinic data from a YAML or JSON file.

        Expected top-level keys: ``schedules``, ``leaves``, ``appointments``,
        ``rooms``, ``services`` (all optional lists of backend records).

        Raises:
            AvailabilitySourceError: If the file is missing, unreadable or
                contains invalid records
        """
        try:
            with open(data_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as exc:
            raise AvailabilitySourceError(f"Could not read data file {data_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise AvailabilitySourceError(f"Invalid data file {data_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise AvailabilitySourceError("Data file must contain a mapping at the root level.")

        source = cls(
            schedules=parse_records(data.get("schedules"), parse_schedule, "schedule"),
            leaves=parse_records(data.get("leaves"), parse_leave, "leave"),
            appointments=parse_records(
                data.get("appointments"), parse_appointment, "appointment"
            ),
            rooms=parse_records(data.get("rooms"), parse_room, "room"),
            services=parse_records(data.get("services"), parse_service, "service"),
        )
        logger.debug(
            "Loaded %d schedules, %d leaves, %d appointments from %s",
            len(source.schedules), len(source.leaves), len(source.appointments), data_path,
        )
        return source

    def _active_schedules(self, staff_id: str, weekday: int) -> List[StaffSchedule]:
        return [
            schedule for schedule in self.schedules
            if schedule.staff_id == staff_id
            and schedule.day_of_week == weekday
            and schedule.is_active
        ]

    def get_working_intervals(self, staff_id: str, weekday: int) -> List[Interval]:
        return [schedule.working for schedule in self._active_schedules(staff_id, weekday)]

    def get_break_intervals(self, staff_id: str, weekday: int) -> List[Interval]:
        return [
            schedule.break_interval
            for schedule in self._active_schedules(staff_id, weekday)
            if schedule.break_interval is not None
        ]

    def is_on_leave(self, staff_id: str, day: Date) -> bool:
        return any(
            leave.staff_id == staff_id and leave.is_approved and leave.covers(day)
            for leave in self.leaves
        )

    def get_booked_intervals(
        self,
        day: Date,
        staff_id: Optional[str] = None,
        room_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Booking]:
        bookings: List[Booking] = []
        for appointment in self.appointments:
            if appointment.scheduled_date != day or not appointment.is_blocking:
                continue
            if exclude_appointment_id and appointment.appointment_id == exclude_appointment_id:
                continue
            if staff_id is None and room_id is None:
                bookings.append(appointment.to_booking())
            elif (staff_id is not None and appointment.staff_id == staff_id) or (
                room_id is not None and appointment.room_id == room_id
            ):
                bookings.append(appointment.to_booking())
        return bookings

    def get_service(self, service_id: str) -> Optional[Service]:
        for service in self.services:
            if service.service_id == service_id:
                return service
        return None

    def get_rooms(self) -> List[Room]:
        return list(self.rooms)

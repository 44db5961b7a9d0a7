"""
Availability source backed by the clinic's REST backend.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from pendulum import Date

from ..domain.exceptions import AvailabilitySourceError
from ..domain.models import AppointmentStatus, Booking, Interval, Room, Service, StaffSchedule
from .records import (
    parse_appointment,
    parse_leave,
    parse_records,
    parse_room,
    parse_schedule,
    parse_service,
)

logger = logging.getLogger(__name__)


class HttpAvailabilitySource:
    """
    Client for the clinic backend's read endpoints.

    Every request uses a short timeout. Failures are raised as
    ``AvailabilitySourceError`` and never retried, so a validation aborts
    instead of treating unknown state as free.

    Response format::

        {"success": true, "data": [...]}
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 10,
    ):
        """
        Initialize the backend client.

        Args:
            base_url: API root, e.g. ``https://praxis.example.com/api``
            api_token: Optional bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, allow_missing: bool = False) -> Any:
        url = f"{self.base_url}{path}"
        query = {key: value for key, value in (params or {}).items() if value is not None}

        try:
            response = requests.get(url, headers=self.headers, params=query, timeout=self.timeout)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise AvailabilitySourceError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise AvailabilitySourceError(f"Invalid JSON from {url}: {e}") from e

        if isinstance(body, dict) and "data" in body:
            if body.get("success") is False:
                raise AvailabilitySourceError(f"Backend error from {url}: {body.get('error', 'unknown')}")
            return body["data"]
        if isinstance(body, list):
            return body

        raise AvailabilitySourceError(f"Unexpected response format from {url}")

    def _schedules(self, staff_id: str, weekday: int) -> List[StaffSchedule]:
        records = self._get("/staff-schedules", {"staffId": staff_id, "dayOfWeek": weekday})
        schedules = parse_records(records, parse_schedule, "schedule")
        return [
            schedule for schedule in schedules
            if schedule.is_active and schedule.staff_id == staff_id and schedule.day_of_week == weekday
        ]

    def get_working_intervals(self, staff_id: str, weekday: int) -> List[Interval]:
        return [schedule.working for schedule in self._schedules(staff_id, weekday)]

    def get_break_intervals(self, staff_id: str, weekday: int) -> List[Interval]:
        return [
            schedule.break_interval
            for schedule in self._schedules(staff_id, weekday)
            if schedule.break_interval is not None
        ]

    def is_on_leave(self, staff_id: str, day: Date) -> bool:
        records = self._get("/staff-leaves", {"staffId": staff_id, "date": day.isoformat()})
        leaves = parse_records(records, parse_leave, "leave")
        return any(
            leave.staff_id == staff_id and leave.is_approved and leave.covers(day)
            for leave in leaves
        )

    def get_booked_intervals(
        self,
        day: Date,
        staff_id: Optional[str] = None,
        room_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Booking]:
        # Staff and room filters are OR-ed locally.
        records = self._get("/appointments", {"date": day.isoformat()})
        appointments = parse_records(records, parse_appointment, "appointment")

        bookings: List[Booking] = []
        for appointment in appointments:
            if appointment.scheduled_date != day or appointment.status == AppointmentStatus.CANCELLED:
                continue
            if exclude_appointment_id and appointment.appointment_id == exclude_appointment_id:
                continue
            matches_staff = staff_id is not None and appointment.staff_id == staff_id
            matches_room = room_id is not None and appointment.room_id == room_id
            if matches_staff or matches_room or (staff_id is None and room_id is None):
                bookings.append(appointment.to_booking())

        logger.debug("Backend returned %d booking(s) for %s", len(bookings), day)
        return bookings

    def get_service(self, service_id: str) -> Optional[Service]:
        record = self._get(f"/services/{service_id}", allow_missing=True)
        if record is None:
            return None
        return parse_records([record], parse_service, "service")[0]

    def get_rooms(self) -> List[Room]:
        return parse_records(self._get("/rooms"), parse_room, "room")

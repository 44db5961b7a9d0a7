"""
Conversion of backend/data-file records into domain models.

Records use the clinic backend's camelCase field names, e.g.::

    {"staffId": "s1", "dayOfWeek": 1, "startTime": "09:00", "endTime": "17:00",
     "breakStartTime": "12:00", "breakEndTime": "13:00", "isActive": true}
"""

from datetime import date as date_type
from typing import Any, Callable, Dict, List, TypeVar

import pendulum
from pendulum import Date

from ..domain.exceptions import AvailabilitySourceError, SchedulingError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    Interval,
    Room,
    Service,
    StaffLeave,
    StaffSchedule,
)
from ..domain.sessions import calculate_session_count_from_service_name

T = TypeVar("T")


def parse_date(value: Any) -> Date:
    """
    Parse a calendar day from an ISO string or a date object.

    Dates are stored without a timezone, so the backend sends the clinic's
    wall-clock day as midnight with a ``Z`` suffix
    (``2025-08-11T00:00:00.000Z``). The day is taken as written and never
    shifted into another zone.
    """
    if isinstance(value, date_type):
        return pendulum.date(value.year, value.month, value.day)

    parsed = pendulum.parse(str(value))
    if isinstance(parsed, date_type):
        return pendulum.date(parsed.year, parsed.month, parsed.day)
    raise ValueError(f"Could not parse date: {value!r}")


def _optional_interval(start: Any, end: Any) -> Interval | None:
    if not start or not end:
        return None
    return Interval.from_strings(start, end)


def parse_schedule(record: Dict[str, Any]) -> StaffSchedule:
    return StaffSchedule(
        staff_id=str(record["staffId"]),
        day_of_week=int(record["dayOfWeek"]),
        working=Interval.from_strings(record["startTime"], record["endTime"]),
        break_interval=_optional_interval(record.get("breakStartTime"), record.get("breakEndTime")),
        is_active=bool(record.get("isActive", True)),
    )


def parse_leave(record: Dict[str, Any]) -> StaffLeave:
    return StaffLeave(
        staff_id=str(record["staffId"]),
        start_date=parse_date(record["startDate"]),
        end_date=parse_date(record["endDate"]),
        is_approved=bool(record.get("isApproved", False)),
        reason=record.get("reason") or "",
    )


def parse_appointment(record: Dict[str, Any]) -> Appointment:
    return Appointment(
        appointment_id=str(record["id"]),
        patient_id=str(record.get("patientId", "")),
        service_id=str(record.get("serviceId", "")),
        staff_id=str(record["staffId"]),
        room_id=str(record["roomId"]),
        scheduled_date=parse_date(record["scheduledDate"]),
        interval=Interval.from_strings(record["startTime"], record["endTime"]),
        status=AppointmentStatus(record.get("status", AppointmentStatus.SCHEDULED.value)),
        package_id=record.get("packageId"),
        notes=record.get("notes") or "",
    )


def parse_room(record: Dict[str, Any]) -> Room:
    return Room(
        room_id=str(record["id"]),
        name=record.get("name", ""),
        is_active=bool(record.get("isActive", True)),
    )


def parse_service(record: Dict[str, Any]) -> Service:
    """Services without an explicit ``sessionCount`` derive it from their name."""
    name = record.get("name", "")
    session_count = record.get("sessionCount")
    if session_count is None:
        session_count = calculate_session_count_from_service_name(name)
    return Service(
        service_id=str(record["id"]),
        name=name,
        duration_minutes=int(record["duration"]),
        session_count=int(session_count),
        is_active=bool(record.get("isActive", True)),
    )


def parse_records(records: Any, parser: Callable[[Dict[str, Any]], T], kind: str) -> List[T]:
    """
    Parse a list of records, turning any bad row into ``AvailabilitySourceError``.

    A partially readable data set is never used.
    """
    if records is None:
        return []
    if not isinstance(records, list):
        raise AvailabilitySourceError(f"Expected a list of {kind}, got {type(records).__name__}")

    parsed: List[T] = []
    for index, record in enumerate(records):
        try:
            parsed.append(parser(record))
        except (KeyError, TypeError, ValueError, SchedulingError) as exc:
            raise AvailabilitySourceError(f"Invalid {kind} record #{index}: {exc}") from exc
    return parsed

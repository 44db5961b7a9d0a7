"""
Tests for booking service.
"""

import pendulum
import pytest

from clinicslots.adapters.memory_source import InMemoryAvailabilitySource
from clinicslots.domain.exceptions import InvalidIntervalError, UnknownServiceError
from clinicslots.domain.models import (
    Appointment,
    ConflictKind,
    Interval,
    PackageItem,
    Room,
    SchedulingRules,
    Service,
    StaffSchedule,
)
from clinicslots.services.booking_service import BookingService

MONDAY = pendulum.date(2025, 8, 11)

MASSAGE = Service(service_id="massage-30", name="Teilmassage", duration_minutes=30)
PHYSIO = Service(service_id="physio-60", name="Physiotherapie", duration_minutes=60)


@pytest.fixture
def source():
    return InMemoryAvailabilitySource(
        schedules=[
            StaffSchedule(
                staff_id="anna",
                day_of_week=1,
                working=Interval.from_strings("09:00", "17:00"),
                break_interval=Interval.from_strings("12:00", "13:00"),
            ),
            StaffSchedule(staff_id="ben", day_of_week=1, working=Interval.from_strings("08:00", "12:00")),
        ],
        appointments=[
            Appointment(
                appointment_id="termin-1",
                patient_id="p-1",
                service_id="massage-30",
                staff_id="anna",
                room_id="raum-1",
                scheduled_date=MONDAY,
                interval=Interval.from_strings("10:00", "10:30"),
            ),
        ],
        rooms=[
            Room(room_id="raum-1"),
            Room(room_id="raum-2"),
            Room(room_id="raum-3", is_active=False),
        ],
        services=[MASSAGE, PHYSIO],
    )


@pytest.fixture
def service(source):
    return BookingService(source, source)


class TestCheckBooking:
    """Tests for booking pre-checks."""

    def test_free_time_is_bookable(self, service):
        result = service.check_booking(
            day=MONDAY, start_time="11:00", service_id="massage-30", staff_id="anna", room_id="raum-1"
        )

        assert result.end_time == "11:30"
        assert result.is_valid_time
        assert result.conflicts == []
        assert result.is_bookable

    def test_end_time_follows_service_duration(self, service):
        result = service.check_booking(
            day=MONDAY, start_time="14:15", service_id="physio-60", staff_id="anna"
        )

        assert result.end_time == "15:15"

    def test_double_booking_reports_staff_and_room(self, service):
        result = service.check_booking(
            day=MONDAY, start_time="10:00", service_id="massage-30", staff_id="anna", room_id="raum-1"
        )

        assert result.is_valid_time
        assert [c.kind for c in result.conflicts] == [
            ConflictKind.STAFF_DOUBLE_BOOK,
            ConflictKind.ROOM_DOUBLE_BOOK,
        ]
        assert not result.is_bookable

    def test_outside_hours_is_invalid_time(self, service):
        result = service.check_booking(
            day=MONDAY, start_time="16:45", service_id="massage-30", staff_id="anna"
        )

        assert not result.is_valid_time
        assert [c.kind for c in result.conflicts] == [ConflictKind.OUTSIDE_HOURS]

    def test_editing_appointment_excludes_itself(self, service):
        result = service.check_booking(
            day=MONDAY,
            start_time="10:00",
            service_id="massage-30",
            staff_id="anna",
            room_id="raum-1",
            exclude_appointment_id="termin-1",
        )

        assert result.is_bookable

    def test_used_up_package_item_is_not_bookable(self, service):
        item = PackageItem.for_units("i1", MASSAGE, 2)

        result = service.check_booking(
            day=MONDAY, start_time="11:00", service_id="massage-30", staff_id="anna",
            package_item=item, booked_sessions=2,
        )

        assert result.conflicts == []
        assert result.sessions_remaining == 0
        assert not result.is_bookable

    def test_package_item_with_sessions_left(self, service):
        item = PackageItem.for_units("i1", MASSAGE, 2)

        result = service.check_booking(
            day=MONDAY, start_time="11:00", service_id="massage-30", staff_id="anna",
            package_item=item, booked_sessions=1,
        )

        assert result.sessions_remaining == 1
        assert result.is_bookable

    def test_unknown_service_raises(self, service):
        with pytest.raises(UnknownServiceError, match="unknown-service"):
            service.check_booking(
                day=MONDAY, start_time="11:00", service_id="unknown-service", staff_id="anna"
            )

    def test_appointment_crossing_midnight_raises(self, service):
        with pytest.raises(InvalidIntervalError):
            service.check_booking(
                day=MONDAY, start_time="23:30", service_id="physio-60", staff_id="anna"
            )

    def test_single_read_per_check(self, source):
        """Working hours, breaks, leave and bookings are read once per check."""
        calls = []

        class CountingSource:
            def __getattr__(self, name):
                method = getattr(source, name)

                def wrapper(*args, **kwargs):
                    calls.append(name)
                    return method(*args, **kwargs)
                return wrapper

        counting = CountingSource()
        service = BookingService(counting, source)

        result = service.check_booking(
            day=MONDAY, start_time="10:00", service_id="massage-30", staff_id="anna", room_id="raum-1"
        )

        assert result.is_valid_time
        assert len(result.conflicts) == 2
        assert sorted(calls) == [
            "get_booked_intervals",
            "get_break_intervals",
            "get_working_intervals",
            "is_on_leave",
        ]


class TestCheckAvailability:
    """Tests for staff and room availability lookup."""

    def test_free_staff_and_active_rooms(self, service):
        result = service.check_availability(
            day=MONDAY, start_time="10:00", duration_minutes=30, staff_ids=["anna", "ben"]
        )

        assert result.end_time == "10:30"
        assert result.available_staff == ["ben"]
        assert result.available_rooms == ["raum-2"]

    def test_room_filter(self, service):
        result = service.check_availability(
            day=MONDAY, start_time="11:00", duration_minutes=30, staff_ids=[],
            room_ids=["raum-1", "raum-3"],
        )

        assert result.available_staff == []
        assert result.available_rooms == ["raum-1"]

    def test_staff_outside_hours_is_not_available(self, service):
        result = service.check_availability(
            day=MONDAY, start_time="11:30", duration_minutes=60, staff_ids=["anna", "ben"]
        )

        assert result.available_staff == []


class TestAvailableSlots:
    """Tests for slot listings."""

    def test_duration_from_service(self, service):
        slots = service.available_slots(day=MONDAY, staff_id="ben", service_id="physio-60")

        assert slots == ["08:00", "08:30", "09:00", "09:30", "10:00", "10:30", "11:00"]

    def test_explicit_duration_and_interval(self, service):
        slots = service.available_slots(
            day=MONDAY, staff_id="ben", duration_minutes=120, interval_minutes=60
        )

        assert slots == ["08:00", "09:00", "10:00"]

    def test_rules_interval_is_default(self, source):
        service = BookingService(source, source, SchedulingRules(slot_interval_minutes=60))

        slots = service.available_slots(day=MONDAY, staff_id="ben", duration_minutes=60)

        assert service.rules.slot_interval_minutes == 60
        assert slots == ["08:00", "09:00", "10:00", "11:00"]

    def test_duration_or_service_required(self, service):
        with pytest.raises(ValueError, match="required"):
            service.available_slots(day=MONDAY, staff_id="ben")

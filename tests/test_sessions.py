"""
Tests for session accounting.
"""

import pendulum
import pytest

from clinicslots.domain.exceptions import InvalidSessionCountError
from clinicslots.domain.models import (
    Appointment,
    AppointmentStatus,
    Interval,
    PackageItem,
    PackageStatus,
    Service,
)
from clinicslots.domain.sessions import (
    calculate_session_count_from_service_name,
    get_total_sessions_for_package_item,
    get_used_sessions_for_package_item,
    remaining_sessions,
    summarize_package,
)


class TestSessionCountFromName:
    """Tests for calculate_session_count_from_service_name."""

    @pytest.mark.parametrize("name, expected", [
        ("10 Teilmassage + 1 Teilmassage gratis", 11),
        ("5 Heilmassagen + 1 free", 6),
        ("Kombi: Massage und Infrarot", 2),
        ("10x Training", 10),
        ("6 Physiotherapie", 6),
        ("Paket: 3 Massagen + 2 Fango", 5),
        ("Massage und Fango und Infrarot", 3),
        ("Teilmassage", 1),
        ("Ganzkörpermassage 60 Min", 1),
    ])
    def test_catalog_naming_conventions(self, name, expected):
        assert calculate_session_count_from_service_name(name) == expected

    def test_package_item_from_bundle_name(self):
        """"10 Teilmassage + 1 Teilmassage gratis" x 2 units = 22 sessions."""
        name = "10 Teilmassage + 1 Teilmassage gratis"
        service = Service(
            service_id="massage-10er",
            name=name,
            duration_minutes=30,
            session_count=calculate_session_count_from_service_name(name),
        )

        item = PackageItem.for_units("i1", service, 2)

        assert service.session_count == 11
        assert item.session_count == 22


class TestSessionArithmetic:
    """Tests for package item totals."""

    def test_total_sessions(self):
        assert get_total_sessions_for_package_item(2, 11) == 22
        assert get_total_sessions_for_package_item(0, 11) == 0

    def test_used_sessions(self):
        assert get_used_sessions_for_package_item(3, 2) == 6

    @pytest.mark.parametrize("args", [(-1, 11), (2, -1)])
    def test_negative_inputs_are_rejected(self, args):
        with pytest.raises(InvalidSessionCountError, match="negative"):
            get_total_sessions_for_package_item(*args)
        with pytest.raises(InvalidSessionCountError, match="negative"):
            get_used_sessions_for_package_item(*args)

    def test_remaining_sessions(self):
        service = Service(service_id="s", name="Massage", duration_minutes=30)
        item = PackageItem.for_units("i1", service, 5)

        assert remaining_sessions(item, 0) == 5
        assert remaining_sessions(item, 3) == 2
        assert remaining_sessions(item, 7) == 0
        with pytest.raises(InvalidSessionCountError):
            remaining_sessions(item, -1)


def _appointment(index: int, service_id: str, status: AppointmentStatus) -> Appointment:
    return Appointment(
        appointment_id=f"t{index}",
        patient_id="p-1",
        service_id=service_id,
        staff_id="anna",
        room_id="raum-1",
        scheduled_date=pendulum.date(2025, 8, 11).add(days=index),
        interval=Interval.from_strings("10:00", "10:30"),
        status=status,
        package_id="pkg-1",
    )


class TestSummarizePackage:
    """Tests for package progress."""

    def _items(self):
        massage = Service(service_id="massage", name="Massage", duration_minutes=30)
        physio = Service(service_id="physio", name="Physio", duration_minutes=60)
        return [PackageItem.for_units("i1", massage, 2), PackageItem.for_units("i2", physio, 1)]

    def test_counts_used_and_booked_sessions(self):
        appointments = [
            _appointment(0, "massage", AppointmentStatus.COMPLETED),
            _appointment(1, "massage", AppointmentStatus.NO_SHOW),
            _appointment(2, "physio", AppointmentStatus.SCHEDULED),
            _appointment(3, "physio", AppointmentStatus.CANCELLED),
        ]

        summary = summarize_package(self._items(), appointments)

        massage = summary.progress_for("i1")
        physio = summary.progress_for("i2")
        assert (massage.used, massage.booked, massage.remaining) == (2, 2, 0)
        assert (physio.used, physio.booked, physio.remaining) == (0, 1, 0)
        assert summary.status == PackageStatus.ACTIVE

    def test_package_completes_when_all_sessions_used(self):
        appointments = [
            _appointment(0, "massage", AppointmentStatus.COMPLETED),
            _appointment(1, "massage", AppointmentStatus.COMPLETED),
            _appointment(2, "physio", AppointmentStatus.NO_SHOW),
        ]

        assert summarize_package(self._items(), appointments).status == PackageStatus.COMPLETED

    def test_completed_package_reopens(self):
        appointments = [
            _appointment(0, "massage", AppointmentStatus.COMPLETED),
            _appointment(1, "massage", AppointmentStatus.SCHEDULED),
            _appointment(2, "physio", AppointmentStatus.COMPLETED),
        ]

        summary = summarize_package(self._items(), appointments, current_status=PackageStatus.COMPLETED)

        assert summary.status == PackageStatus.ACTIVE

    def test_cancelled_package_stays_cancelled(self):
        summary = summarize_package(self._items(), [], current_status=PackageStatus.CANCELLED)

        assert summary.status == PackageStatus.CANCELLED

    def test_unknown_item_raises_key_error(self):
        with pytest.raises(KeyError):
            summarize_package(self._items(), []).progress_for("missing")

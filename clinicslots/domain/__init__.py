"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .availability import AvailabilitySource, ClinicDirectory, DayAvailability
from .conflict_checker import ConflictChecker
from .models import (
    Appointment,
    AppointmentStatus,
    Booking,
    Conflict,
    ConflictKind,
    Interval,
    PackageItem,
    PackageStatus,
    Room,
    SchedulingRules,
    Service,
    StaffLeave,
    StaffSchedule,
)
from .slot_enumerator import SlotEnumerator

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AvailabilitySource",
    "Booking",
    "ClinicDirectory",
    "Conflict",
    "ConflictChecker",
    "ConflictKind",
    "DayAvailability",
    "Interval",
    "PackageItem",
    "PackageStatus",
    "Room",
    "SchedulingRules",
    "Service",
    "SlotEnumerator",
    "StaffLeave",
    "StaffSchedule",
]

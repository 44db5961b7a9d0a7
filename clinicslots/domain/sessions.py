"""
Session accounting for services and package items.

Catalog names encode bundles, e.g. "10 Teilmassage + 1 Teilmassage gratis"
is one unit worth 11 sessions.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .exceptions import InvalidSessionCountError
from .models import Appointment, AppointmentStatus, PackageItem, PackageStatus

_BONUS_PATTERN = re.compile(r"(\d+).*?\+.*?(\d+).*?(gratis|free)", re.IGNORECASE)
_LEADING_PATTERN = re.compile(r"^(\d+)x?\s")
_PLUS_PATTERN = re.compile(r"(\d+).*?\+.*?(\d+)")

USED_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW)


def calculate_session_count_from_service_name(name: str) -> int:
    """
    Recover how many sessions one unit of a catalog service represents.

    Recognized conventions, first match wins:
    - "10 X + 1 X gratis" / "... free" -> 10 + 1
    - "Kombi: A und B" -> 2
    - "5x Massage" / "5 Massagen" -> 5
    - "3 X + 2 Y" -> 3 + 2
    - "A und B und C" -> 3

    Falls back to 1 session.
    """
    lowered = name.lower().strip()

    match = _BONUS_PATTERN.search(lowered)
    if match:
        return _at_least_one(int(match.group(1)) + int(match.group(2)))

    if "kombi:" in lowered and "und" in lowered:
        return 2

    match = _LEADING_PATTERN.match(lowered)
    if match:
        return _at_least_one(int(match.group(1)))

    match = _PLUS_PATTERN.search(lowered)
    if match:
        return _at_least_one(int(match.group(1)) + int(match.group(2)))

    if " und " in lowered:
        return len(lowered.split(" und "))

    return 1


def _at_least_one(count: int) -> int:
    return count if count > 0 else 1


def _require_non_negative(**values: int) -> None:
    for label, value in values.items():
        if value < 0:
            raise InvalidSessionCountError(f"{label} must not be negative, got {value}")


def get_total_sessions_for_package_item(units_purchased: int, sessions_per_unit: int) -> int:
    """Total sessions sold: units purchased x sessions per unit."""
    _require_non_negative(units_purchased=units_purchased, sessions_per_unit=sessions_per_unit)
    return units_purchased * sessions_per_unit


def get_used_sessions_for_package_item(completed_appointments: int, sessions_per_unit: int) -> int:
    """Sessions consumed: completed appointments x sessions per unit."""
    _require_non_negative(
        completed_appointments=completed_appointments, sessions_per_unit=sessions_per_unit
    )
    return completed_appointments * sessions_per_unit


def remaining_sessions(item: PackageItem, booked: int) -> int:
    """Sessions of ``item`` not yet covered by a non-cancelled appointment."""
    _require_non_negative(booked=booked)
    return max(item.session_count - booked, 0)


@dataclass(frozen=True)
class PackageItemProgress:
    item_id: str
    service_id: str
    session_count: int
    used: int
    booked: int

    @property
    def remaining(self) -> int:
        return max(self.session_count - self.booked, 0)

    @property
    def is_used_up(self) -> bool:
        return self.used >= self.session_count


@dataclass(frozen=True)
class PackageSummary:
    status: PackageStatus
    items: List[PackageItemProgress] = field(default_factory=list)

    def progress_for(self, item_id: str) -> PackageItemProgress:
        for progress in self.items:
            if progress.item_id == item_id:
                return progress
        raise KeyError(item_id)


def summarize_package(
    items: Iterable[PackageItem],
    appointments: Iterable[Appointment],
    current_status: PackageStatus = PackageStatus.ACTIVE,
) -> PackageSummary:
    """
    Recount a package from its appointments.

    Every non-cancelled appointment books one session of its service;
    COMPLETED and NO_SHOW appointments use it up. The package is COMPLETED
    once every item is used up and reopens (ACTIVE) otherwise. A CANCELLED
    package stays cancelled.
    """
    used: Dict[str, int] = {}
    booked: Dict[str, int] = {}

    for appointment in appointments:
        if not appointment.is_blocking:
            continue
        booked[appointment.service_id] = booked.get(appointment.service_id, 0) + 1
        if appointment.status in USED_STATUSES:
            used[appointment.service_id] = used.get(appointment.service_id, 0) + 1

    progress = [
        PackageItemProgress(
            item_id=item.item_id,
            service_id=item.service.service_id,
            session_count=item.session_count,
            used=used.get(item.service.service_id, 0),
            booked=booked.get(item.service.service_id, 0),
        )
        for item in items
    ]

    if current_status == PackageStatus.CANCELLED:
        status = PackageStatus.CANCELLED
    elif progress and all(p.is_used_up for p in progress):
        status = PackageStatus.COMPLETED
    else:
        status = PackageStatus.ACTIVE

    return PackageSummary(status=status, items=progress)

"""
Enumeration of bookable start times for one staff member on one day.
"""

import logging
from typing import Iterator, Optional

from pendulum import Date

from .availability import DayAvailability
from .conflict_checker import ConflictChecker
from .exceptions import InvalidDurationError
from .models import Interval
from .timeutils import format_minutes

logger = logging.getLogger(__name__)


class SlotEnumerator:
    """
    Lists candidate start times that fit a service into a staff member's day.

    Algorithm:
    1. Nothing is bookable on a leave day
    2. For each working interval, step from its start by the slot interval
       while ``start + duration`` still fits inside that same interval
    3. Drop candidates that hit a break or an existing booking
    4. Yield ``HH:MM`` strings, interval by interval in definition order

    Each call starts from a fresh read; no state is kept between calls.
    """

    def __init__(self, checker: ConflictChecker):
        self.checker = checker

    def get_available_time_slots(
        self,
        day: Date,
        staff_id: str,
        service_duration: int,
        time_slot_interval: Optional[int] = None,
    ) -> Iterator[str]:
        """
        Return a lazy iterator over bookable start times.

        Args:
            day: Calendar day to search
            staff_id: Staff member providing the service
            service_duration: Length of the service in minutes
            time_slot_interval: Step between candidates; defaults to the
                configured slot interval (30 minutes)

        Raises:
            InvalidDurationError: If the duration or step is not positive.
        """
        step = time_slot_interval if time_slot_interval is not None else self.checker.rules.slot_interval_minutes

        if service_duration <= 0:
            raise InvalidDurationError(f"Service duration must be greater than zero, got {service_duration}")
        if step <= 0:
            raise InvalidDurationError(f"Slot interval must be greater than zero, got {step}")

        return self._iter_slots(day, staff_id, service_duration, step)

    def _iter_slots(self, day: Date, staff_id: str, duration: int, step: int) -> Iterator[str]:
        snapshot = DayAvailability.fetch(
            self.checker.source, day, staff_id=staff_id, rules=self.checker.rules
        )

        if snapshot.on_leave:
            logger.debug("Staff %s is on leave on %s, no slots", staff_id, day)
            return

        yielded = set()
        for working in snapshot.working:
            start = working.start
            while start + duration <= working.end:
                candidate = Interval(start=start, end=start + duration)
                if start not in yielded and not self.checker.evaluate(snapshot, candidate):
                    yielded.add(start)
                    yield format_minutes(start)
                start += step

        logger.debug("%d slot(s) for staff %s on %s", len(yielded), staff_id, day)

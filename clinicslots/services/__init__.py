"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import AvailabilityResult, BookingCheck, BookingService

__all__ = ["AvailabilityResult", "BookingCheck", "BookingService"]

"""
Adapters layer - Availability sources (clinic REST backend, data files).
"""

from .http_source import HttpAvailabilitySource
from .memory_source import InMemoryAvailabilitySource

__all__ = ["HttpAvailabilitySource", "InMemoryAvailabilitySource"]

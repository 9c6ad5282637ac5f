"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AvailabilityResponse,
    AvailabilityService,
    BookingStoreProtocol,
    CalendarClientProtocol,
    WorkerAvailability,
)
from .booking import BookingRequest, BookingService
from .settings_cache import SettingsCache

__all__ = [
    "AvailabilityResponse",
    "AvailabilityService",
    "BookingRequest",
    "BookingService",
    "BookingStoreProtocol",
    "CalendarClientProtocol",
    "SettingsCache",
    "WorkerAvailability",
]

"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import BusinessHours, TimeRange, TimeSlot, WeeklyBusinessHours
from .slot_calculator import SlotCalculator, compute_slots

__all__ = [
    "BusinessHours",
    "TimeRange",
    "TimeSlot",
    "WeeklyBusinessHours",
    "SlotCalculator",
    "compute_slots",
]

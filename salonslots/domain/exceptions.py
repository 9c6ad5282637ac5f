"""
Domain-specific exception hierarchy for the salon booking core.
"""


class SalonSlotsError(Exception):
    """Base class for all application-level errors."""


class CalendarAPIError(SalonSlotsError):
    """Raised when calendar data cannot be fetched or parsed."""


class AuthenticationError(SalonSlotsError):
    """Raised when a calendar access token cannot be obtained."""


class BookingStoreError(SalonSlotsError):
    """Raised when the booking/settings database cannot be read or written."""


class WorkerNotFoundError(SalonSlotsError):
    """Raised when a requested worker does not exist or is inactive."""


class SlotUnavailableError(SalonSlotsError):
    """Raised when a chosen slot conflicts at booking time."""


class ServiceNotFoundError(SalonSlotsError):
    """Raised when a requested service does not exist or is inactive."""


class BookingNotFoundError(SalonSlotsError):
    """Raised when a booking id does not exist."""

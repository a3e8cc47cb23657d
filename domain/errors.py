"""Booking error taxonomy shared by services and the API layer."""

from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for booking engine errors carrying a machine-readable code."""

    code = "booking_error"

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details or {}


class InvalidInput(BookingError):
    """Malformed or missing request input."""

    code = "invalid_input"


class ConfigurationMissing(BookingError):
    """No venue-hours rule applies to the requested date."""

    code = "configuration_missing"


class OutsideBookingWindow(BookingError):
    """The requested date falls outside the active booking window."""

    code = "outside_booking_window"


class VenueClosed(BookingError):
    """Full-day closure, full-day private event, or a time outside venue hours."""

    code = "venue_closed"


class NoTableAvailable(BookingError):
    """No table can host the party for the requested interval."""

    code = "no_table_available"


class ConcurrencyConflict(BookingError):
    """A commit lost a race against a concurrent booking; retried internally."""

    code = "concurrency_conflict"


class ReservationNotFound(BookingError):
    """Raised when a reservation is not found."""

    code = "reservation_not_found"


class PrivateEventNotFound(BookingError):
    """Raised when a private event is not found or no longer active."""

    code = "private_event_not_found"

"""Domain layer for the venue booking engine."""

from .enums import (
    AuditAction,
    NotificationAction,
    PrivateEventStatus,
    ReservationStatus,
    VenueHoursType,
)
from .errors import (
    BookingError,
    ConcurrencyConflict,
    ConfigurationMissing,
    InvalidInput,
    NoTableAvailable,
    OutsideBookingWindow,
    PrivateEventNotFound,
    ReservationNotFound,
    VenueClosed,
)
from .interval import Interval, overlaps

__all__ = [
    # Enums
    "AuditAction",
    "NotificationAction",
    "PrivateEventStatus",
    "ReservationStatus",
    "VenueHoursType",
    # Errors
    "BookingError",
    "ConcurrencyConflict",
    "ConfigurationMissing",
    "InvalidInput",
    "NoTableAvailable",
    "OutsideBookingWindow",
    "PrivateEventNotFound",
    "ReservationNotFound",
    "VenueClosed",
    # Interval model
    "Interval",
    "overlaps",
]

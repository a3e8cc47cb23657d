"""Domain enums for the venue booking engine."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Reservation lifecycle status."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class PrivateEventStatus(str, Enum):
    """Private event status."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class VenueHoursType(str, Enum):
    """Kinds of venue-hours rules."""

    BASE = "base"
    EXCEPTIONAL_OPEN = "exceptional_open"
    EXCEPTIONAL_CLOSURE = "exceptional_closure"


class AuditAction(str, Enum):
    """Audit log action types."""

    RESERVATION_CREATED = "reservation_created"
    RESERVATION_MODIFIED = "reservation_modified"
    RESERVATION_CANCELLED = "reservation_cancelled"
    RESERVATION_CHECKED_IN = "reservation_checked_in"
    EVENT_RSVP_CREATED = "event_rsvp_created"


class NotificationAction(str, Enum):
    """Reservation notification kinds sent to the notification gateway."""

    CREATED = "created"
    MODIFIED = "modified"
    CANCELLED = "cancelled"

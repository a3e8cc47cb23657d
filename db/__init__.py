"""Database layer for the venue booking engine."""

from .base import Base, TimestampMixin, UTCDateTime
from .models_sqlalchemy import (
    AuditLog,
    BookingWindow,
    DiningTable,
    PrivateEvent,
    Reservation,
    VenueHoursRule,
)
from .session import Database, DatabaseConfig, create_engine

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    # Models
    "AuditLog",
    "BookingWindow",
    "DiningTable",
    "PrivateEvent",
    "Reservation",
    "VenueHoursRule",
    # Session
    "Database",
    "DatabaseConfig",
    "create_engine",
]

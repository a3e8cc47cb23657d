"""Request and response models using Pydantic v2 for the venue booking engine."""

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AuditAction, ReservationStatus


PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"


class GuestInfo(BaseModel):
    """Guest contact details attached to a reservation."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN, description="Phone number in E.164 format")
    email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=500, description="Special requests or notes")

    model_config = ConfigDict(str_strip_whitespace=True)


class AvailableSlotsRequest(BaseModel):
    """Query for the offerable slots of a date."""

    date: dt.date = Field(..., description="Venue-local date")
    party_size: int = Field(..., ge=1, description="Number of guests")

    model_config = ConfigDict(str_strip_whitespace=True)


class AvailableSlotsResponse(BaseModel):
    """Offerable slot labels for a date."""

    date: dt.date
    party_size: int
    slots: List[str]


class AlternativeTimesRequest(BaseModel):
    """Query for the nearest available times around a requested one."""

    date: dt.date
    party_size: int = Field(..., ge=1)
    requested_time: str = Field(..., min_length=1, max_length=20, description='Time label, e.g. "7:00pm"')

    model_config = ConfigDict(str_strip_whitespace=True)


class AlternativeTimesResponse(BaseModel):
    """Nearest available labels strictly before and after the requested time."""

    requested_time: str
    before: Optional[str] = None
    after: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class NextOpenSlotRequest(BaseModel):
    """Query for the earliest open start at or after a desired instant."""

    desired_start: dt.datetime = Field(..., description="ISO-8601 instant; naive values are UTC")
    party_size: int = Field(..., ge=1)


class NextOpenSlotResponse(BaseModel):
    """Earliest open start, or null when nothing opens within the search horizon."""

    desired_start: dt.datetime
    party_size: int
    next_open_slot: Optional[dt.datetime] = None


class ReservationCreate(BaseModel):
    """Model for creating a new reservation."""

    date: dt.date = Field(..., description="Venue-local date")
    time: str = Field(..., min_length=1, max_length=20, description='Slot label, e.g. "6:30pm"')
    party_size: int = Field(..., ge=1, description="Number of guests")
    guest: GuestInfo = Field(default_factory=GuestInfo)

    model_config = ConfigDict(str_strip_whitespace=True)


class ReservationUpdate(BaseModel):
    """Model for updating an existing reservation; omitted fields are left unchanged."""

    date: Optional[dt.date] = None
    time: Optional[str] = Field(None, min_length=1, max_length=20)
    party_size: Optional[int] = Field(None, ge=1)
    table_id: Optional[int] = Field(None, ge=1, description="Move the reservation to this table")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)

    @property
    def moves_seating(self) -> bool:
        """True if the update touches when, how many or where."""
        return any(v is not None for v in (self.date, self.time, self.party_size, self.table_id))

    def guest_changes(self) -> Dict[str, Any]:
        fields = ("first_name", "last_name", "phone", "email", "notes")
        return {name: getattr(self, name) for name in fields if name in self.model_fields_set}


class EventRsvpCreate(BaseModel):
    """Attendee booking for a private event."""

    party_size: int = Field(..., ge=1)
    table_id: Optional[int] = Field(None, ge=1, description="Seat the attendee at this table")
    guest: GuestInfo = Field(default_factory=GuestInfo)

    model_config = ConfigDict(str_strip_whitespace=True)


class ReservationRecord(BaseModel):
    """Complete reservation record from database."""

    id: int
    table_id: Optional[int] = None
    start_time: dt.datetime
    end_time: dt.datetime
    party_size: int
    status: ReservationStatus
    private_event_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    checked_in_at: Optional[dt.datetime] = None
    cancelled_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuditLogEntry(BaseModel):
    """Audit log entry model."""

    id: int
    action: AuditAction
    entity_type: str
    entity_id: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("details", mode="before")
    @classmethod
    def validate_details(cls, v: Any) -> Dict[str, Any]:
        """Ensure details is a dictionary."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return v
        raise ValueError("details must be a dictionary")


class ErrorResponse(BaseModel):
    """Error body returned for every booking error."""

    error: str = Field(..., description="Machine-readable error code")
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    alternatives: Optional[AlternativeTimesResponse] = None

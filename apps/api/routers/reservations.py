"""Reservation endpoints: booking, edits, cancellation, check-in and event RSVPs."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from apps.api.deps import get_availability_service, get_reservation_service
from domain.errors import BookingError, NoTableAvailable
from domain.models import (
    AlternativeTimesResponse,
    AuditLogEntry,
    ErrorResponse,
    EventRsvpCreate,
    ReservationCreate,
    ReservationRecord,
    ReservationUpdate,
)
from services.availability_service import AvailabilityService
from services.reservation_service import ReservationService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["reservations"])


@router.post(
    "/reservations",
    response_model=ReservationRecord,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
)
def create_reservation(
    body: ReservationCreate,
    service: ReservationService = Depends(get_reservation_service),
    availability: AvailabilityService = Depends(get_availability_service),
):
    """
    Book a table.

    When no table can host the party, the 409 response carries the nearest
    available times before and after the requested one.
    """
    try:
        return service.create_reservation(body.date, body.time, body.party_size, body.guest)
    except NoTableAvailable as e:
        alternatives = None
        try:
            result = availability.find_alternative_times(body.date, body.party_size, body.time)
            alternatives = AlternativeTimesResponse.model_validate(result)
        except BookingError as alt_error:
            logger.warning(f"Could not compute alternatives for {body.date} {body.time}: {alt_error.code}")

        error = ErrorResponse(error=e.code, message=e.message, details=e.details, alternatives=alternatives)
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=error.model_dump(mode="json"))


@router.get("/reservations", response_model=List[ReservationRecord])
def list_reservations(
    start_date: Optional[date] = Query(None, description="First venue-local date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Last venue-local date (inclusive)"),
    include_cancelled: bool = Query(False, description="Include cancelled reservations"),
    service: ReservationService = Depends(get_reservation_service),
):
    """List reservations ordered by start time."""
    return service.list_reservations(start_date, end_date, include_cancelled=include_cancelled)


@router.get("/reservations/{reservation_id}", response_model=ReservationRecord)
def get_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
):
    """Get a specific reservation by ID."""
    return service.get_reservation(reservation_id)


@router.patch("/reservations/{reservation_id}", response_model=ReservationRecord)
def update_reservation(
    reservation_id: int,
    body: ReservationUpdate,
    service: ReservationService = Depends(get_reservation_service),
):
    """Change time, date, party size, table or guest details of a reservation."""
    return service.update_reservation(reservation_id, body)


@router.delete("/reservations/{reservation_id}", response_model=ReservationRecord)
def cancel_reservation(
    reservation_id: int,
    reason: Optional[str] = Query(None, max_length=500, description="Cancellation reason"),
    service: ReservationService = Depends(get_reservation_service),
):
    """Cancel a reservation, releasing its table."""
    return service.cancel_reservation(reservation_id, reason=reason)


@router.post("/reservations/{reservation_id}/check-in", response_model=ReservationRecord)
def check_in_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
):
    """Mark the party as arrived."""
    return service.check_in_reservation(reservation_id)


@router.get("/reservations/{reservation_id}/audit-log", response_model=List[AuditLogEntry])
def get_reservation_audit_log(
    reservation_id: int,
    limit: int = Query(100, ge=1, le=500, description="Number of entries to return"),
    service: ReservationService = Depends(get_reservation_service),
):
    """Audit trail of a reservation, oldest first."""
    return service.get_audit_log(reservation_id, limit=limit)


@router.post(
    "/private-events/{event_id}/rsvp",
    response_model=ReservationRecord,
    status_code=status.HTTP_201_CREATED,
)
def create_event_rsvp(
    event_id: int,
    body: EventRsvpCreate,
    service: ReservationService = Depends(get_reservation_service),
):
    """Book an attendee for a private event, optionally at a specific table."""
    return service.create_event_reservation(event_id, body.party_size, body.guest, table_id=body.table_id)

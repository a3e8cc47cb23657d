"""Availability endpoints: slot listings, alternative times and next open slot."""

from fastapi import APIRouter, Depends

from apps.api.deps import get_availability_service
from core.utils_datetime import ensure_utc
from domain.models import (
    AlternativeTimesRequest,
    AlternativeTimesResponse,
    AvailableSlotsRequest,
    AvailableSlotsResponse,
    NextOpenSlotRequest,
    NextOpenSlotResponse,
)
from services.availability_service import AvailabilityService


router = APIRouter(tags=["availability"])


@router.post("/available-slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    body: AvailableSlotsRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    """
    List the offerable start times for a date and party size.

    A closed date, a date outside the booking window or a date without
    configured hours yields an empty list.
    """
    slots = service.get_available_slots(body.date, body.party_size)
    return AvailableSlotsResponse(date=body.date, party_size=body.party_size, slots=slots)


@router.post("/find-alternative-times", response_model=AlternativeTimesResponse)
def find_alternative_times(
    body: AlternativeTimesRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Nearest available times strictly before and after the requested one on the same day."""
    result = service.find_alternative_times(body.date, body.party_size, body.requested_time)
    return AlternativeTimesResponse.model_validate(result)


@router.post("/next-open-slot", response_model=NextOpenSlotResponse)
def find_next_open_slot(
    body: NextOpenSlotRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Earliest instant at or after desired_start where some table seats the party."""
    result = service.find_next_open_slot(body.desired_start, body.party_size)
    return NextOpenSlotResponse(
        desired_start=ensure_utc(body.desired_start),
        party_size=body.party_size,
        next_open_slot=result,
    )

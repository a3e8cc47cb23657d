"""FastAPI dependencies resolving the services built at startup."""

from fastapi import Request

from services.availability_service import AvailabilityService
from services.reservation_service import ReservationService


def get_availability_service(request: Request) -> AvailabilityService:
    return request.app.state.availability_service


def get_reservation_service(request: Request) -> ReservationService:
    return request.app.state.reservation_service

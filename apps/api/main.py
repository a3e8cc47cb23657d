"""FastAPI application entrypoint for the venue booking engine."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.api.routers import availability, reservations
from core.config import Settings, get_settings
from core.logging import setup_logging
from core.venue_config import BookingRules
from db.session import Database
from domain.errors import (
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
from domain.models import ErrorResponse
from services.availability_service import AvailabilityService
from services.notifications import LoggingNotificationGateway
from services.reservation_service import ReservationService


logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

# HTTP status for each booking error code
ERROR_STATUS_CODES = {
    InvalidInput.code: status.HTTP_400_BAD_REQUEST,
    OutsideBookingWindow.code: 422,
    VenueClosed.code: 422,
    ConfigurationMissing.code: 422,
    NoTableAvailable.code: status.HTTP_409_CONFLICT,
    ConcurrencyConflict.code: status.HTTP_409_CONFLICT,
    ReservationNotFound.code: status.HTTP_404_NOT_FOUND,
    PrivateEventNotFound.code: status.HTTP_404_NOT_FOUND,
}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render a BookingError as {error, message, details}."""
    status_code = ERROR_STATUS_CODES.get(exc.code, status.HTTP_400_BAD_REQUEST)
    body = ErrorResponse(error=exc.code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are invalid_input, like service-level input errors."""
    body = ErrorResponse(
        error=InvalidInput.code,
        message="Request validation failed",
        details={"errors": [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]},
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(mode="json", exclude_none=True))


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (defaults to environment settings)
        database: Store handle to use instead of one built from settings;
            the caller keeps ownership of it

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Builds the store handle and services at startup, disposes them at shutdown.
        """
        setup_logging(settings)
        logger.info(
            f"Starting {settings.APP_NAME}",
            extra={"version": APP_VERSION, "venue_timezone": settings.VENUE_TIMEZONE},
        )

        db = database or Database.from_settings(settings)
        if database is None and settings.is_development:
            db.create_all()

        rules = BookingRules.from_settings(settings)
        availability_service = AvailabilityService(db, rules)
        app.state.database = db
        app.state.availability_service = availability_service
        app.state.reservation_service = ReservationService(
            db,
            rules,
            availability=availability_service,
            notifications=LoggingNotificationGateway(settings.ADMIN_NOTIFICATION_PHONE),
        )

        logger.info("Application startup complete")

        yield

        logger.info(f"Shutting down {settings.APP_NAME}")
        if database is None:
            db.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Availability and table-assignment engine for venue reservations",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(availability.router, prefix=settings.API_V1_PREFIX)
    app.include_router(reservations.router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    async def root():
        """Root endpoint - health check."""
        return {
            "app": settings.APP_NAME,
            "status": "running",
            "version": APP_VERSION,
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "database": app.state.database.dialect_name,
            "venue_timezone": settings.VENUE_TIMEZONE,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "apps.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )

"""
Collaborator interfaces for reservation side effects.

Notification delivery and payment holds live outside the booking engine; the
engine only calls these narrow interfaces after a reservation is committed.
"""

import logging
from typing import Optional, Protocol

from db.models_sqlalchemy import Reservation
from domain.enums import NotificationAction


logger = logging.getLogger(__name__)


class NotificationGateway(Protocol):
    """Sends reservation notifications (SMS, email, staff alerts)."""

    def notify_reservation(self, reservation: Reservation, action: NotificationAction) -> None:
        ...


class HoldProcessor(Protocol):
    """Places a payment hold for a committed reservation."""

    def place_hold(self, reservation: Reservation) -> None:
        ...


class LoggingNotificationGateway:
    """Notification gateway that only writes the notification to the log."""

    def __init__(self, admin_phone: Optional[str] = None):
        self.admin_phone = admin_phone

    def notify_reservation(self, reservation: Reservation, action: NotificationAction) -> None:
        logger.info(
            f"Reservation {action.value}: id={reservation.id} table={reservation.table_id} "
            f"start={reservation.start_time.isoformat()} party={reservation.party_size}",
            extra={"admin_phone": self.admin_phone} if self.admin_phone else None,
        )


class NullHoldProcessor:
    """No payment holds."""

    def place_hold(self, reservation: Reservation) -> None:
        return None

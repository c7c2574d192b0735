"""
Notification adapter - records booking confirmations in the service log.

Outbound e-mail delivery is handled outside this service; swapping in a real
transport only requires another INotificationService implementation.
"""
import logging

from dinebook_service.config import get_settings
from dinebook_service.domain.entities.booking import Booking
from dinebook_service.domain.ports.notification_port import INotificationService

logger = logging.getLogger(__name__)

settings = get_settings()


class LoggingNotificationService(INotificationService):
    """Writes confirmation messages to the log instead of sending them"""

    def __init__(self, sender: str | None = None):
        self.sender = sender or settings.notification_sender

    async def send_booking_confirmation(
        self,
        email: str,
        booking: Booking,
        restaurant_name: str
    ) -> None:
        if not email:
            raise ValueError("Customer has no e-mail address")
        lines = [
            f"Booking {booking.id} confirmed at {restaurant_name}",
            f"Date: {booking.date} {booking.time}, guests: {booking.guests}",
        ]
        if booking.special_requests:
            lines.append(f"Special requests: {booking.special_requests}")
        logger.info(f"📧 Confirmation from {self.sender} to {email}: " + " | ".join(lines))

"""
Notification service port (interface)
"""
from abc import ABC, abstractmethod

from dinebook_service.domain.entities.booking import Booking


class INotificationService(ABC):
    """Outbound customer notifications"""

    @abstractmethod
    async def send_booking_confirmation(
        self,
        email: str,
        booking: Booking,
        restaurant_name: str
    ) -> None:
        """Send a booking confirmation to the customer"""
        pass

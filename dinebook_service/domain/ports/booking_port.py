"""
Booking repository port (interface)
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from dinebook_service.domain.entities.booking import Booking, MonthlyBookingStats


class IBookingRepository(ABC):
    """Booking repository interface"""

    @abstractmethod
    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        """Get booking by ID"""
        pass

    @abstractmethod
    async def booked_guests_by_time(self, restaurant_id: str, date: str) -> Dict[str, int]:
        """Guests of confirmed/pending bookings per time label on a date"""
        pass

    @abstractmethod
    async def insert_within_capacity(self, booking: Booking, capacity: int) -> Booking:
        """Insert booking atomically with the capacity check for its slot.

        The sum of confirmed/pending guests at restaurant+date+time and the insert
        run in one transaction. Raises CapacityExceededError when the booking does
        not fit; nothing is written in that case.
        """
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking status"""
        pass

    @abstractmethod
    async def list_for_customer(
        self,
        customer_id: str,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None
    ) -> List[Booking]:
        """List a customer's bookings, newest first"""
        pass

    @abstractmethod
    async def list_for_restaurant(
        self,
        restaurant_id: str,
        status: Optional[str] = None,
        date: Optional[str] = None,
        limit: int = 10
    ) -> List[Booking]:
        """List a restaurant's bookings, newest first"""
        pass

    @abstractmethod
    async def count(
        self,
        restaurant_id: str,
        statuses: Optional[Sequence[str]] = None,
        date: Optional[str] = None,
        date_from: Optional[str] = None
    ) -> int:
        """Count bookings of a restaurant"""
        pass

    @abstractmethod
    async def total_guests(self, restaurant_id: str, statuses: Sequence[str]) -> int:
        """Sum of guests over bookings with the given statuses"""
        pass

    @abstractmethod
    async def monthly_stats(
        self,
        restaurant_id: str,
        statuses: Sequence[str],
        since: datetime
    ) -> List[MonthlyBookingStats]:
        """Bookings and guests grouped by creation month, oldest first"""
        pass

"""
Booking entity (DDD Aggregate Root) and availability value objects
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that hold seats at a slot
ACTIVE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.PENDING.value)
# Statuses counted as realised business in owner statistics
FULFILLED_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


@dataclass
class Booking:
    """Booking aggregate root"""
    id: Optional[str] = None
    customer_id: str = ""
    restaurant_id: str = ""
    date: str = ""
    time: str = ""
    guests: int = 1
    special_requests: Optional[str] = None
    status: str = BookingStatus.CONFIRMED.value
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED.value

    def starts_at(self) -> datetime:
        return datetime.strptime(f"{self.date} {self.time}", "%Y-%m-%d %H:%M")

    def is_past(self, now: Optional[datetime] = None) -> bool:
        return self.starts_at() < (now or datetime.now())

    def cancel(self):
        """Cancel booking"""
        self.status = BookingStatus.CANCELLED.value
        self.updated_at = datetime.utcnow()


@dataclass
class SlotAvailability:
    """Remaining capacity at one time slot"""
    time: str
    available_capacity: int
    total_capacity: int

    @property
    def available(self) -> bool:
        return self.available_capacity > 0


def compute_slot_availability(
    time_slots: List[str],
    booked_guests: Dict[str, int],
    capacity: int
) -> List[SlotAvailability]:
    """Capacity minus guests already booked at each exact slot"""
    return [
        SlotAvailability(
            time=slot,
            available_capacity=capacity - booked_guests.get(slot, 0),
            total_capacity=capacity
        )
        for slot in time_slots
    ]


@dataclass
class MonthlyBookingStats:
    year: int
    month: int
    bookings: int
    guests: int

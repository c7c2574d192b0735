"""
Booking availability engine.

Computes open time slots for a restaurant/date, creates bookings behind an
atomic capacity check, cancels bookings, and keeps the availability and
booking-list caches consistent with those writes.
"""
import logging
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime
from typing import Callable, List, Optional

from dinebook_service.domain.entities.booking import (
    FULFILLED_STATUSES,
    Booking,
    BookingStatus,
    MonthlyBookingStats,
    SlotAvailability,
    compute_slot_availability,
)
from dinebook_service.domain.entities.restaurant import (
    Restaurant,
    day_of_week,
    generate_time_slots,
    is_time_within_hours,
    is_valid_time,
    parse_date,
)
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.booking_port import IBookingRepository
from dinebook_service.domain.ports.notification_port import INotificationService
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository
from dinebook_service.exceptions import (
    AuthorizationError,
    CapacityExceededError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from dinebook_service.infrastructure.cache.memory_cache import (
    MemoryCache,
    availability_key,
    user_bookings_key,
    user_bookings_prefix,
)

logger = logging.getLogger(__name__)

MAX_SPECIAL_REQUESTS_LENGTH = 500
STATS_MONTHS = 6


@dataclass
class Availability:
    """Slot availability for a restaurant on one date"""
    restaurant_id: str
    date: str
    day_of_week: str
    restaurant_name: Optional[str] = None
    open: Optional[str] = None
    close: Optional[str] = None
    slots: List[SlotAvailability] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.open is None


@dataclass
class BookingDetails:
    """Booking plus the names the API shows next to it"""
    booking: Booking
    restaurant_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None


@dataclass
class BookingStats:
    total_bookings: int
    upcoming_bookings: int
    cancelled_bookings: int
    total_guests: int
    monthly_stats: List[MonthlyBookingStats]


def _months_ago(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    return moment.replace(year=year, month=month + 1, day=min(moment.day, 28))


class BookingService:
    """Booking use cases over the booking and restaurant repositories"""

    def __init__(
        self,
        booking_repository: IBookingRepository,
        restaurant_repository: IRestaurantRepository,
        notification_service: INotificationService,
        availability_cache: MemoryCache,
        bookings_cache: MemoryCache,
        slot_interval_minutes: int = 30,
        max_party_size: int = 20,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.booking_repository = booking_repository
        self.restaurant_repository = restaurant_repository
        self.notification_service = notification_service
        self.availability_cache = availability_cache
        self.bookings_cache = bookings_cache
        self.slot_interval_minutes = slot_interval_minutes
        self.max_party_size = max_party_size
        self.clock = clock

    # Helpers

    def _parse_date(self, value: str) -> date_type:
        try:
            return parse_date(value)
        except ValueError as e:
            raise ValidationError("Invalid date format, expected YYYY-MM-DD") from e

    async def _get_active_restaurant(self, restaurant_id: str) -> Restaurant:
        restaurant = await self.restaurant_repository.get_by_id(restaurant_id)
        if not restaurant or not restaurant.is_active:
            raise NotFoundError("Restaurant not found")
        return restaurant

    async def _get_own_booking(self, customer: User, booking_id: str) -> Booking:
        booking = await self.booking_repository.get_by_id(booking_id)
        # Someone else's booking is reported as missing
        if not booking or booking.customer_id != customer.id:
            raise NotFoundError("Booking not found")
        return booking

    async def _restaurant_name(self, restaurant_id: str) -> Optional[str]:
        restaurant = await self.restaurant_repository.get_by_id(restaurant_id)
        return restaurant.name if restaurant else None

    def _invalidate(self, customer_id: str, restaurant_id: str, date: str):
        self.availability_cache.delete(availability_key(restaurant_id, date))
        self.bookings_cache.delete_prefix(user_bookings_prefix(customer_id))

    def _validate_new_booking(self, date: str, time: str, guests: int, special_requests: Optional[str]):
        booking_date = self._parse_date(date)
        if not is_valid_time(time):
            raise ValidationError("Invalid time format, expected HH:MM")
        if guests is None or guests < 1:
            raise ValidationError("Number of guests must be at least 1")
        if guests > self.max_party_size:
            raise ValidationError(f"Number of guests cannot exceed {self.max_party_size}")
        if special_requests and len(special_requests) > MAX_SPECIAL_REQUESTS_LENGTH:
            raise ValidationError(
                f"Special requests cannot exceed {MAX_SPECIAL_REQUESTS_LENGTH} characters"
            )

        now = self.clock()
        if booking_date < now.date():
            raise ValidationError("Cannot book for a past date")
        if datetime.strptime(f"{date} {time}", "%Y-%m-%d %H:%M") < now:
            raise ValidationError("Cannot book a time that has already passed")

    # Use cases

    async def get_availability(self, restaurant_id: str, date: str) -> Availability:
        """Open slots with remaining capacity for a restaurant on a date"""
        self._parse_date(date)

        cache_key = availability_key(restaurant_id, date)
        cached = self.availability_cache.get(cache_key)
        if cached is not None:
            return cached
        generation = self.availability_cache.generation

        restaurant = await self._get_active_restaurant(restaurant_id)
        weekday = day_of_week(date)
        hours = restaurant.hours_for(weekday)

        if hours.is_closed:
            availability = Availability(
                restaurant_id=restaurant_id,
                restaurant_name=restaurant.name,
                date=date,
                day_of_week=weekday,
                message=f"Restaurant is closed on {weekday}"
            )
        else:
            time_slots = generate_time_slots(hours.open, hours.close, self.slot_interval_minutes)
            booked_guests = await self.booking_repository.booked_guests_by_time(restaurant_id, date)
            availability = Availability(
                restaurant_id=restaurant_id,
                restaurant_name=restaurant.name,
                date=date,
                day_of_week=weekday,
                open=hours.open,
                close=hours.close,
                slots=compute_slot_availability(time_slots, booked_guests, restaurant.capacity)
            )

        # Skipped when a booking changed the slots while they were being computed
        self.availability_cache.set_if_current(cache_key, availability, generation)
        return availability

    async def create_booking(
        self,
        customer: User,
        restaurant_id: str,
        date: str,
        time: str,
        guests: int,
        special_requests: Optional[str] = None
    ) -> BookingDetails:
        """Create a confirmed booking if the slot still has room"""
        self._validate_new_booking(date, time, guests, special_requests)
        restaurant = await self._get_active_restaurant(restaurant_id)

        weekday = day_of_week(date)
        hours = restaurant.hours_for(weekday)
        if hours.is_closed:
            raise ValidationError(f"Restaurant is closed on {weekday}")
        if not is_time_within_hours(time, hours.open, hours.close):
            raise ValidationError(
                f"Restaurant is closed at {time}. Hours: {hours.open} - {hours.close}"
            )

        booking = Booking(
            customer_id=customer.id,
            restaurant_id=restaurant_id,
            date=date,
            time=time,
            guests=guests,
            special_requests=(special_requests or "").strip() or None,
            status=BookingStatus.CONFIRMED.value
        )

        try:
            booking = await self.booking_repository.insert_within_capacity(booking, restaurant.capacity)
        except CapacityExceededError as e:
            if e.available_capacity <= 0:
                raise ConflictError(f"No tables available at {time} on {date}") from e
            raise ConflictError(
                f"Only {e.available_capacity} seats available at {time} on {date}"
            ) from e

        logger.info(
            f"Booking {booking.id} created: restaurant={restaurant_id} "
            f"{date} {time} guests={guests}"
        )
        self._invalidate(customer.id, restaurant_id, date)
        await self._send_confirmation(customer, booking, restaurant.name)

        return BookingDetails(booking=booking, restaurant_name=restaurant.name)

    async def _send_confirmation(self, customer: User, booking: Booking, restaurant_name: str):
        """Best effort: a failed notification never fails the booking"""
        try:
            await self.notification_service.send_booking_confirmation(
                customer.email, booking, restaurant_name
            )
        except Exception as e:
            logger.error(
                f"Failed to send confirmation for booking {booking.id} to {customer.email}: {e}",
                exc_info=True
            )

    async def get_booking(self, customer: User, booking_id: str) -> BookingDetails:
        """Get one of the customer's bookings"""
        booking = await self._get_own_booking(customer, booking_id)
        return BookingDetails(
            booking=booking,
            restaurant_name=await self._restaurant_name(booking.restaurant_id)
        )

    async def cancel_booking(self, customer: User, booking_id: str) -> BookingDetails:
        """Cancel one of the customer's upcoming bookings"""
        booking = await self._get_own_booking(customer, booking_id)

        if booking.is_cancelled:
            raise ValidationError("Booking is already cancelled")
        if booking.is_past(self.clock()):
            raise ValidationError("Cannot cancel past bookings")

        booking.cancel()
        booking = await self.booking_repository.update(booking)
        logger.info(f"Booking {booking.id} cancelled by customer {customer.id}")

        self._invalidate(customer.id, booking.restaurant_id, booking.date)
        return BookingDetails(
            booking=booking,
            restaurant_name=await self._restaurant_name(booking.restaurant_id)
        )

    async def list_user_bookings(
        self,
        customer: User,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None
    ) -> List[BookingDetails]:
        """The customer's bookings, newest first"""
        if status == "all":
            status = None
        if status and status not in {s.value for s in BookingStatus}:
            raise ValidationError(f"Invalid booking status: {status}")
        for value in (date_from, date_to):
            if value:
                self._parse_date(value)

        cache_key = user_bookings_key(customer.id, status, date_from, date_to)
        cached = self.bookings_cache.get(cache_key)
        if cached is not None:
            return cached
        generation = self.bookings_cache.generation

        bookings = await self.booking_repository.list_for_customer(
            customer.id, status=status, date_from=date_from, date_to=date_to
        )
        restaurants = await self.restaurant_repository.get_many(
            [booking.restaurant_id for booking in bookings]
        )
        result = [
            BookingDetails(
                booking=booking,
                restaurant_name=restaurants[booking.restaurant_id].name
                if booking.restaurant_id in restaurants else None
            )
            for booking in bookings
        ]
        self.bookings_cache.set_if_current(cache_key, result, generation)
        return result

    async def get_booking_stats(self, owner: User, restaurant_id: str) -> BookingStats:
        """Booking statistics for an owner's restaurant"""
        if not owner.is_owner:
            raise AuthorizationError("Only restaurant owners can access booking stats")

        restaurant = await self.restaurant_repository.get_by_id(restaurant_id)
        if not restaurant or not restaurant.is_owned_by(owner.id):
            raise NotFoundError("Restaurant not found or you don't have access to it")

        now = self.clock()
        today = now.date().isoformat()
        repo = self.booking_repository
        return BookingStats(
            total_bookings=await repo.count(restaurant_id, statuses=FULFILLED_STATUSES),
            upcoming_bookings=await repo.count(
                restaurant_id, statuses=[BookingStatus.CONFIRMED.value], date_from=today
            ),
            cancelled_bookings=await repo.count(
                restaurant_id, statuses=[BookingStatus.CANCELLED.value]
            ),
            total_guests=await repo.total_guests(restaurant_id, FULFILLED_STATUSES),
            monthly_stats=await repo.monthly_stats(
                restaurant_id, FULFILLED_STATUSES, _months_ago(now, STATS_MONTHS)
            )
        )


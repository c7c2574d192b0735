import asyncio
from datetime import datetime

import pytest

from dinebook_service.domain.entities.booking import Booking, BookingStatus
from dinebook_service.domain.entities.user import ROLE_CUSTOMER, ROLE_OWNER, User
from dinebook_service.domain.services.booking_service import BookingDetails, BookingService
from dinebook_service.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from dinebook_service.infrastructure.cache.memory_cache import MemoryCache
from tests.conftest import make_restaurant
from tests.fakes import (
    FakeBookingRepository,
    FakeRestaurantRepository,
    RecordingNotificationService,
    new_id,
)

NOW = datetime(2030, 1, 1, 12, 0)
TUESDAY = "2030-01-08"
MONDAY = "2030-01-07"


@pytest.fixture
def booking_repo():
    return FakeBookingRepository()


@pytest.fixture
def restaurant_repo():
    return FakeRestaurantRepository()


@pytest.fixture
def notifier():
    return RecordingNotificationService()


@pytest.fixture
def owner():
    return User(id=new_id(), name="Olivia", email="owner@example.com", role=ROLE_OWNER)


@pytest.fixture
def guest():
    return User(id=new_id(), name="Carl", email="carl@example.com", role=ROLE_CUSTOMER)


@pytest.fixture
def restaurant(restaurant_repo, owner):
    return restaurant_repo.seed(make_restaurant(owner.id, capacity=20))


@pytest.fixture
def service(booking_repo, restaurant_repo, notifier):
    return BookingService(
        booking_repository=booking_repo,
        restaurant_repository=restaurant_repo,
        notification_service=notifier,
        availability_cache=MemoryCache("availability", 300),
        bookings_cache=MemoryCache("bookings", 120),
        slot_interval_minutes=30,
        max_party_size=20,
        clock=lambda: NOW
    )


def seed_booking(booking_repo, restaurant, guests, time="19:00", date=TUESDAY, status="confirmed"):
    return booking_repo.seed(Booking(
        customer_id=new_id(),
        restaurant_id=restaurant.id,
        date=date,
        time=time,
        guests=guests,
        status=status
    ))


def slot(availability, time):
    return next(s for s in availability.slots if s.time == time)


def test_closed_day_returns_no_slots(service, restaurant):
    availability = asyncio.run(service.get_availability(restaurant.id, MONDAY))

    assert availability.slots == []
    assert availability.day_of_week == "monday"
    assert availability.message == "Restaurant is closed on monday"


def test_availability_counts_only_confirmed_and_pending(service, booking_repo, restaurant):
    seed_booking(booking_repo, restaurant, 10)
    seed_booking(booking_repo, restaurant, 4, status="pending")
    seed_booking(booking_repo, restaurant, 6, status="cancelled")
    seed_booking(booking_repo, restaurant, 5, status="completed")
    seed_booking(booking_repo, restaurant, 3, time="19:30")

    availability = asyncio.run(service.get_availability(restaurant.id, TUESDAY))

    assert len(availability.slots) == 10
    assert slot(availability, "19:00").available_capacity == 6
    assert slot(availability, "19:30").available_capacity == 17
    assert slot(availability, "17:00").available_capacity == 20


def test_inactive_restaurant_is_not_found(service, restaurant_repo, owner):
    closed = restaurant_repo.seed(make_restaurant(owner.id, is_active=False))

    with pytest.raises(NotFoundError):
        asyncio.run(service.get_availability(closed.id, TUESDAY))


def test_invalid_date_is_rejected(service, restaurant):
    with pytest.raises(ValidationError):
        asyncio.run(service.get_availability(restaurant.id, "08-01-2030"))


def test_partial_capacity_rejects_with_remaining_seats(service, booking_repo, restaurant, guest):
    seed_booking(booking_repo, restaurant, 10)
    seed_booking(booking_repo, restaurant, 8)

    availability = asyncio.run(service.get_availability(restaurant.id, TUESDAY))
    assert slot(availability, "19:00").available_capacity == 2

    with pytest.raises(ConflictError, match="Only 2 seats available at 19:00 on 2030-01-08"):
        asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 3))
    assert len(booking_repo.bookings) == 2


def test_full_slot_rejects_with_no_tables(service, booking_repo, restaurant, guest):
    seed_booking(booking_repo, restaurant, 20)

    with pytest.raises(ConflictError, match="No tables available at 19:00 on 2030-01-08"):
        asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 1))


def test_create_booking_confirms_and_notifies(service, booking_repo, restaurant, guest, notifier):
    details = asyncio.run(service.create_booking(
        guest, restaurant.id, TUESDAY, "19:00", 4, special_requests="  Window seat  "
    ))

    assert details.restaurant_name == "Trattoria Roma"
    assert details.booking.status == BookingStatus.CONFIRMED.value
    assert details.booking.special_requests == "Window seat"
    assert details.booking.id in booking_repo.bookings
    assert [(email, name) for email, _, name in notifier.sent] == [("carl@example.com", "Trattoria Roma")]


def test_blank_special_requests_are_dropped(service, restaurant, guest):
    details = asyncio.run(service.create_booking(
        guest, restaurant.id, TUESDAY, "19:00", 2, special_requests="   "
    ))

    assert details.booking.special_requests is None


def test_notification_failure_does_not_fail_booking(booking_repo, restaurant_repo, restaurant, guest):
    service = BookingService(
        booking_repository=booking_repo,
        restaurant_repository=restaurant_repo,
        notification_service=RecordingNotificationService(fail=True),
        availability_cache=MemoryCache("availability", 300),
        bookings_cache=MemoryCache("bookings", 120),
        clock=lambda: NOW
    )

    details = asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 2))

    assert details.booking.id in booking_repo.bookings


def test_concurrent_requests_for_last_seats_admit_exactly_one(service, booking_repo, restaurant, guest):
    seed_booking(booking_repo, restaurant, 18)

    async def race():
        return await asyncio.gather(
            service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 2),
            service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 2),
            return_exceptions=True
        )

    results = asyncio.run(race())

    assert sum(isinstance(r, BookingDetails) for r in results) == 1
    assert sum(isinstance(r, ConflictError) for r in results) == 1
    assert booking_repo._booked_at(restaurant.id, TUESDAY, "19:00") == 20


def test_booking_is_rejected_on_closed_day(service, restaurant, guest):
    with pytest.raises(ValidationError, match="Restaurant is closed on monday"):
        asyncio.run(service.create_booking(guest, restaurant.id, MONDAY, "19:00", 2))


@pytest.mark.parametrize("time", ["16:30", "22:00", "23:15"])
def test_booking_outside_opening_hours_is_rejected(service, restaurant, guest, time):
    with pytest.raises(ValidationError, match=f"Restaurant is closed at {time}. Hours: 17:00 - 22:00"):
        asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, time, 2))


@pytest.mark.parametrize("date,time,guests,message", [
    ("2029-12-31", "19:00", 2, "Cannot book for a past date"),
    (TUESDAY, "7pm", 2, "Invalid time format"),
    (TUESDAY, "19:00", 0, "at least 1"),
    (TUESDAY, "19:00", 21, "cannot exceed 20"),
    ("2030/01/08", "19:00", 2, "Invalid date format"),
])
def test_invalid_booking_input(service, restaurant, guest, date, time, guests, message):
    with pytest.raises(ValidationError, match=message):
        asyncio.run(service.create_booking(guest, restaurant.id, date, time, guests))


def test_special_requests_length_is_limited(service, restaurant, guest):
    with pytest.raises(ValidationError, match="500"):
        asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 2, "x" * 501))


def test_new_booking_invalidates_cached_availability(service, restaurant, guest):
    before = asyncio.run(service.get_availability(restaurant.id, TUESDAY))
    asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 5))
    after = asyncio.run(service.get_availability(restaurant.id, TUESDAY))

    assert slot(before, "19:00").available_capacity == 20
    assert slot(after, "19:00").available_capacity == 15


def test_availability_computed_during_a_booking_is_not_cached(service, booking_repo, restaurant, guest):
    count_guests = booking_repo.booked_guests_by_time

    async def booked_while_counting(restaurant_id, date):
        counted = await count_guests(restaurant_id, date)
        await service.create_booking(guest, restaurant_id, date, "19:00", 5)
        return counted

    booking_repo.booked_guests_by_time = booked_while_counting
    stale = asyncio.run(service.get_availability(restaurant.id, TUESDAY))
    booking_repo.booked_guests_by_time = count_guests
    fresh = asyncio.run(service.get_availability(restaurant.id, TUESDAY))

    assert slot(stale, "19:00").available_capacity == 20
    assert slot(fresh, "19:00").available_capacity == 15


def test_cancellation_frees_capacity(service, restaurant, guest):
    details = asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 20))
    full = asyncio.run(service.get_availability(restaurant.id, TUESDAY))
    assert not slot(full, "19:00").available

    cancelled = asyncio.run(service.cancel_booking(guest, details.booking.id))
    freed = asyncio.run(service.get_availability(restaurant.id, TUESDAY))

    assert cancelled.booking.status == BookingStatus.CANCELLED.value
    assert slot(freed, "19:00").available_capacity == 20


def test_cancel_twice_is_rejected(service, restaurant, guest):
    details = asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 2))
    asyncio.run(service.cancel_booking(guest, details.booking.id))

    with pytest.raises(ValidationError, match="Booking is already cancelled"):
        asyncio.run(service.cancel_booking(guest, details.booking.id))


def test_past_booking_cannot_be_cancelled(service, booking_repo, restaurant, guest):
    past = booking_repo.seed(Booking(
        customer_id=guest.id, restaurant_id=restaurant.id, date="2029-12-20", time="19:00", guests=2
    ))

    with pytest.raises(ValidationError, match="Cannot cancel past bookings"):
        asyncio.run(service.cancel_booking(guest, past.id))


def test_other_customers_booking_is_not_found(service, restaurant, guest):
    details = asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 2))
    stranger = User(id=new_id(), name="Eve", email="eve@example.com")

    with pytest.raises(NotFoundError):
        asyncio.run(service.cancel_booking(stranger, details.booking.id))
    with pytest.raises(NotFoundError):
        asyncio.run(service.get_booking(stranger, details.booking.id))


def test_user_bookings_are_filtered_and_refreshed_after_writes(service, restaurant, guest):
    first = asyncio.run(service.create_booking(guest, restaurant.id, TUESDAY, "19:00", 2))
    asyncio.run(service.create_booking(guest, restaurant.id, "2030-01-09", "18:00", 2))

    assert len(asyncio.run(service.list_user_bookings(guest, status="all"))) == 2
    assert len(asyncio.run(service.list_user_bookings(guest, date_from="2030-01-09"))) == 1

    asyncio.run(service.cancel_booking(guest, first.booking.id))
    cancelled = asyncio.run(service.list_user_bookings(guest, status="cancelled"))
    confirmed = asyncio.run(service.list_user_bookings(guest, status="all"))

    assert [d.booking.id for d in cancelled] == [first.booking.id]
    assert len(confirmed) == 2
    assert all(d.restaurant_name == "Trattoria Roma" for d in confirmed)


def test_unknown_status_filter_is_rejected(service, guest):
    with pytest.raises(ValidationError):
        asyncio.run(service.list_user_bookings(guest, status="lost"))


def test_booking_stats_for_owner(service, booking_repo, restaurant, owner):
    seed_booking(booking_repo, restaurant, 4)
    seed_booking(booking_repo, restaurant, 2, status="completed", date="2029-12-20")
    seed_booking(booking_repo, restaurant, 3, status="cancelled")

    stats = asyncio.run(service.get_booking_stats(owner, restaurant.id))

    assert stats.total_bookings == 2
    assert stats.upcoming_bookings == 1
    assert stats.cancelled_bookings == 1
    assert stats.total_guests == 6


def test_booking_stats_require_owner(service, restaurant, guest, owner):
    other_owner = User(id=new_id(), name="Oscar", email="oscar@example.com", role=ROLE_OWNER)

    with pytest.raises(AuthorizationError):
        asyncio.run(service.get_booking_stats(guest, restaurant.id))
    with pytest.raises(NotFoundError):
        asyncio.run(service.get_booking_stats(other_owner, restaurant.id))

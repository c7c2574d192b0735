"""
In-memory implementations of the repository and notification ports
"""
import asyncio
import copy
import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from bson import ObjectId

from dinebook_service.domain.entities.booking import (
    ACTIVE_STATUSES,
    Booking,
    MonthlyBookingStats,
)
from dinebook_service.domain.entities.favorite import Favorite
from dinebook_service.domain.entities.restaurant import MenuItem, Restaurant
from dinebook_service.domain.entities.review import Review
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.booking_port import IBookingRepository
from dinebook_service.domain.ports.favorite_port import IFavoriteRepository
from dinebook_service.domain.ports.notification_port import INotificationService
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository, RestaurantQuery
from dinebook_service.domain.ports.review_port import IReviewRepository
from dinebook_service.domain.ports.user_port import IUserRepository
from dinebook_service.exceptions import CapacityExceededError, ConflictError, GeoQueryError


def new_id() -> str:
    return str(ObjectId())


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    radius = 6378100.0
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * radius * math.asin(math.sqrt(a))


class FakeUserRepository(IUserRepository):
    def __init__(self):
        self.users: Dict[str, User] = {}

    def seed(self, user: User) -> User:
        user.id = user.id or new_id()
        self.users[user.id] = user
        return user

    async def create(self, user: User) -> User:
        if any(u.email == user.email.lower() for u in self.users.values()):
            raise ConflictError("Email already registered")
        user.email = user.email.lower()
        return self.seed(user)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email.lower()), None)

    async def get_many(self, user_ids: List[str]) -> Dict[str, User]:
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}


class FakeRestaurantRepository(IRestaurantRepository):
    def __init__(self):
        self.restaurants: Dict[str, Restaurant] = {}
        self.geo_available = True

    def seed(self, restaurant: Restaurant) -> Restaurant:
        restaurant.id = restaurant.id or new_id()
        for item in restaurant.menu_items:
            item.id = item.id or new_id()
        self.restaurants[restaurant.id] = copy.deepcopy(restaurant)
        return restaurant

    def _matches(self, restaurant: Restaurant, query: RestaurantQuery) -> bool:
        if not restaurant.is_active:
            return False
        if query.cuisine and restaurant.cuisine != query.cuisine:
            return False
        if query.price_range is not None and restaurant.price_range != query.price_range:
            return False
        if query.location and query.location.lower() not in restaurant.location.lower():
            return False
        return True

    async def create(self, restaurant: Restaurant) -> Restaurant:
        return copy.deepcopy(self.seed(restaurant))

    async def get_by_id(self, restaurant_id: str) -> Optional[Restaurant]:
        return copy.deepcopy(self.restaurants.get(restaurant_id))

    async def get_many(self, restaurant_ids: List[str]) -> Dict[str, Restaurant]:
        return {
            rid: copy.deepcopy(self.restaurants[rid])
            for rid in restaurant_ids if rid in self.restaurants
        }

    async def list_by_owner(self, owner_id: str) -> List[Restaurant]:
        owned = [r for r in self.restaurants.values() if r.owner_id == owner_id and r.is_active]
        owned.sort(key=lambda r: r.created_at, reverse=True)
        return copy.deepcopy(owned)

    async def search(
        self,
        query: RestaurantQuery,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Restaurant], int]:
        matched = sorted(
            (r for r in self.restaurants.values() if self._matches(r, query)),
            key=lambda r: r.name
        )
        return copy.deepcopy(matched[skip:skip + limit]), len(matched)

    async def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        query: RestaurantQuery,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Restaurant], int]:
        if not self.geo_available:
            raise GeoQueryError("index not found for $geoNear query")
        found = []
        for restaurant in self.restaurants.values():
            if not restaurant.coordinates or not self._matches(restaurant, query):
                continue
            distance = haversine_meters(
                latitude, longitude,
                restaurant.coordinates.latitude, restaurant.coordinates.longitude
            )
            if distance <= radius_km * 1000:
                match = copy.deepcopy(restaurant)
                match.distance = distance
                found.append(match)
        found.sort(key=lambda r: r.distance)
        return found[skip:skip + limit], len(found)

    async def update(self, restaurant: Restaurant) -> Restaurant:
        stored = self.restaurants[restaurant.id]
        restaurant.menu_items = stored.menu_items
        restaurant.average_rating = stored.average_rating
        restaurant.updated_at = datetime.utcnow()
        self.restaurants[restaurant.id] = copy.deepcopy(restaurant)
        return restaurant

    async def set_average_rating(self, restaurant_id: str, average_rating: float) -> None:
        self.restaurants[restaurant_id].average_rating = average_rating

    async def add_menu_item(self, restaurant_id: str, item: MenuItem) -> MenuItem:
        item.id = new_id()
        self.restaurants[restaurant_id].menu_items.append(copy.deepcopy(item))
        return item

    async def update_menu_item(self, restaurant_id: str, item: MenuItem) -> bool:
        items = self.restaurants[restaurant_id].menu_items
        for index, existing in enumerate(items):
            if existing.id == item.id:
                items[index] = copy.deepcopy(item)
                return True
        return False

    async def delete_menu_item(self, restaurant_id: str, item_id: str) -> bool:
        restaurant = self.restaurants[restaurant_id]
        before = len(restaurant.menu_items)
        restaurant.menu_items = [i for i in restaurant.menu_items if i.id != item_id]
        return len(restaurant.menu_items) < before


class FakeBookingRepository(IBookingRepository):
    """Serializes check-and-insert per repository, like the slot lock in MongoDB"""

    def __init__(self):
        self.bookings: Dict[str, Booking] = {}
        self._lock: Optional[asyncio.Lock] = None

    def seed(self, booking: Booking) -> Booking:
        booking.id = booking.id or new_id()
        self.bookings[booking.id] = copy.deepcopy(booking)
        return booking

    def _booked_at(self, restaurant_id: str, date: str, time: str) -> int:
        return sum(
            b.guests for b in self.bookings.values()
            if b.restaurant_id == restaurant_id and b.date == date
            and b.time == time and b.status in ACTIVE_STATUSES
        )

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        return copy.deepcopy(self.bookings.get(booking_id))

    async def booked_guests_by_time(self, restaurant_id: str, date: str) -> Dict[str, int]:
        guests: Dict[str, int] = defaultdict(int)
        for b in self.bookings.values():
            if b.restaurant_id == restaurant_id and b.date == date and b.status in ACTIVE_STATUSES:
                guests[b.time] += b.guests
        return dict(guests)

    async def insert_within_capacity(self, booking: Booking, capacity: int) -> Booking:
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            booked = self._booked_at(booking.restaurant_id, booking.date, booking.time)
            # Yield between read and write so an unguarded version would race
            await asyncio.sleep(0)
            if booking.guests > capacity - booked:
                raise CapacityExceededError(capacity - booked)
            return copy.deepcopy(self.seed(booking))

    async def update(self, booking: Booking) -> Booking:
        self.bookings[booking.id] = copy.deepcopy(booking)
        return booking

    async def list_for_customer(
        self,
        customer_id: str,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None
    ) -> List[Booking]:
        result = [
            b for b in self.bookings.values()
            if b.customer_id == customer_id
            and (not status or b.status == status)
            and (not date_from or b.date >= date_from)
            and (not date_to or b.date <= date_to)
        ]
        result.sort(key=lambda b: b.created_at, reverse=True)
        return copy.deepcopy(result)

    async def list_for_restaurant(
        self,
        restaurant_id: str,
        status: Optional[str] = None,
        date: Optional[str] = None,
        limit: int = 10
    ) -> List[Booking]:
        result = [
            b for b in self.bookings.values()
            if b.restaurant_id == restaurant_id
            and (not status or b.status == status)
            and (not date or b.date == date)
        ]
        result.sort(key=lambda b: b.created_at, reverse=True)
        return copy.deepcopy(result[:limit])

    async def count(
        self,
        restaurant_id: str,
        statuses: Optional[Sequence[str]] = None,
        date: Optional[str] = None,
        date_from: Optional[str] = None
    ) -> int:
        return sum(
            1 for b in self.bookings.values()
            if b.restaurant_id == restaurant_id
            and (not statuses or b.status in statuses)
            and (not date or b.date == date)
            and (date or not date_from or b.date >= date_from)
        )

    async def total_guests(self, restaurant_id: str, statuses: Sequence[str]) -> int:
        return sum(
            b.guests for b in self.bookings.values()
            if b.restaurant_id == restaurant_id and b.status in statuses
        )

    async def monthly_stats(
        self,
        restaurant_id: str,
        statuses: Sequence[str],
        since: datetime
    ) -> List[MonthlyBookingStats]:
        grouped: Dict[Tuple[int, int], List[Booking]] = defaultdict(list)
        for b in self.bookings.values():
            if b.restaurant_id == restaurant_id and b.status in statuses and b.created_at >= since:
                grouped[(b.created_at.year, b.created_at.month)].append(b)
        return [
            MonthlyBookingStats(
                year=year,
                month=month,
                bookings=len(items),
                guests=sum(b.guests for b in items)
            )
            for (year, month), items in sorted(grouped.items())
        ]


class FakeReviewRepository(IReviewRepository):
    def __init__(self):
        self.reviews: Dict[str, Review] = {}

    def seed(self, review: Review) -> Review:
        review.id = review.id or new_id()
        self.reviews[review.id] = copy.deepcopy(review)
        return review

    async def create(self, review: Review) -> Review:
        if any(
            r.customer_id == review.customer_id and r.restaurant_id == review.restaurant_id
            for r in self.reviews.values()
        ):
            raise ConflictError("You have already reviewed this restaurant")
        return copy.deepcopy(self.seed(review))

    async def get_by_id(self, review_id: str) -> Optional[Review]:
        return copy.deepcopy(self.reviews.get(review_id))

    async def update(self, review: Review) -> Review:
        self.reviews[review.id] = copy.deepcopy(review)
        return review

    async def delete(self, review_id: str) -> bool:
        return self.reviews.pop(review_id, None) is not None

    async def list_for_restaurant(self, restaurant_id: str) -> List[Review]:
        result = [r for r in self.reviews.values() if r.restaurant_id == restaurant_id]
        result.sort(key=lambda r: r.created_at, reverse=True)
        return copy.deepcopy(result)

    async def list_for_customer(self, customer_id: str) -> List[Review]:
        result = [r for r in self.reviews.values() if r.customer_id == customer_id]
        result.sort(key=lambda r: r.created_at, reverse=True)
        return copy.deepcopy(result)

    async def count_for_restaurant(self, restaurant_id: str) -> int:
        return sum(1 for r in self.reviews.values() if r.restaurant_id == restaurant_id)

    async def average_rating(self, restaurant_id: str) -> float:
        ratings = [r.rating for r in self.reviews.values() if r.restaurant_id == restaurant_id]
        return round(sum(ratings) / len(ratings), 2) if ratings else 0.0


class FakeFavoriteRepository(IFavoriteRepository):
    def __init__(self):
        self.favorites: Dict[str, Favorite] = {}

    async def get(self, user_id: str, restaurant_id: str) -> Optional[Favorite]:
        return next(
            (f for f in self.favorites.values() if f.user_id == user_id and f.restaurant_id == restaurant_id),
            None
        )

    async def add(self, favorite: Favorite) -> Favorite:
        if await self.get(favorite.user_id, favorite.restaurant_id):
            raise ConflictError("Restaurant is already in favorites")
        favorite.id = new_id()
        self.favorites[favorite.id] = favorite
        return favorite

    async def remove(self, favorite_id: str) -> bool:
        return self.favorites.pop(favorite_id, None) is not None

    async def list_for_user(self, user_id: str) -> List[Favorite]:
        result = [f for f in self.favorites.values() if f.user_id == user_id]
        result.sort(key=lambda f: f.created_at, reverse=True)
        return result


class RecordingNotificationService(INotificationService):
    def __init__(self, fail: bool = False):
        self.sent: List[Tuple[str, Booking, str]] = []
        self.fail = fail

    async def send_booking_confirmation(self, email: str, booking: Booking, restaurant_name: str) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append((email, booking, restaurant_name))

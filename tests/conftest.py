import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/dinebook_test")

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from dinebook_service.app.api.v1 import dependencies
from dinebook_service.app.api.v1.auth import create_access_token
from dinebook_service.app.main import app
from dinebook_service.domain.entities.restaurant import WEEKDAYS, DayHours, GeoPoint, Restaurant
from dinebook_service.domain.entities.user import ROLE_CUSTOMER, ROLE_OWNER, User
from dinebook_service.infrastructure.cache.memory_cache import clear_all_caches
from tests.fakes import (
    FakeBookingRepository,
    FakeFavoriteRepository,
    FakeRestaurantRepository,
    FakeReviewRepository,
    FakeUserRepository,
    RecordingNotificationService,
)

# Open Tuesday to Sunday 17:00-22:00, closed on Mondays
OPENING_HOURS = {day: DayHours(open="17:00", close="22:00") for day in WEEKDAYS if day != "monday"}


def next_weekday(name: str, weeks_ahead: int = 1) -> str:
    """ISO date of the given weekday at least `weeks_ahead` weeks from today"""
    day = date.today() + timedelta(days=7 * weeks_ahead)
    while WEEKDAYS[day.weekday()] != name:
        day += timedelta(days=1)
    return day.isoformat()


def make_restaurant(owner_id: str, **overrides) -> Restaurant:
    fields = dict(
        name="Trattoria Roma",
        cuisine="Italian",
        location="Toronto, ON",
        coordinates=GeoPoint(latitude=43.6540, longitude=-79.3800),
        price_range=2,
        capacity=20,
        opening_hours=dict(OPENING_HOURS),
        owner_id=owner_id,
    )
    fields.update(overrides)
    return Restaurant(**fields)


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def repos():
    return SimpleNamespace(
        users=FakeUserRepository(),
        restaurants=FakeRestaurantRepository(),
        bookings=FakeBookingRepository(),
        reviews=FakeReviewRepository(),
        favorites=FakeFavoriteRepository(),
        notifications=RecordingNotificationService(),
    )


@pytest.fixture(autouse=True)
def clean_caches():
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def client(repos):
    app.dependency_overrides[dependencies.get_user_repository] = lambda: repos.users
    app.dependency_overrides[dependencies.get_restaurant_repository] = lambda: repos.restaurants
    app.dependency_overrides[dependencies.get_booking_repository] = lambda: repos.bookings
    app.dependency_overrides[dependencies.get_review_repository] = lambda: repos.reviews
    app.dependency_overrides[dependencies.get_favorite_repository] = lambda: repos.favorites
    app.dependency_overrides[dependencies.get_notification_service] = lambda: repos.notifications
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def owner(repos) -> User:
    return repos.users.seed(User(name="Olivia Owner", email="owner@example.com", role=ROLE_OWNER))


@pytest.fixture
def customer(repos) -> User:
    return repos.users.seed(User(name="Carl Customer", email="carl@example.com", role=ROLE_CUSTOMER))


@pytest.fixture
def other_customer(repos) -> User:
    return repos.users.seed(User(name="Cora Customer", email="cora@example.com", role=ROLE_CUSTOMER))


@pytest.fixture
def restaurant(repos, owner) -> Restaurant:
    return repos.restaurants.seed(make_restaurant(owner.id))

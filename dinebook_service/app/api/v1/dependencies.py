"""
Dependency injection for repositories and services
"""
from fastapi import Depends

from dinebook_service.config import get_settings
from dinebook_service.domain.ports.booking_port import IBookingRepository
from dinebook_service.domain.ports.favorite_port import IFavoriteRepository
from dinebook_service.domain.ports.notification_port import INotificationService
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository
from dinebook_service.domain.ports.review_port import IReviewRepository
from dinebook_service.domain.ports.user_port import IUserRepository
from dinebook_service.domain.services.booking_service import BookingService
from dinebook_service.infrastructure.adapters.booking_repository_adapter import BookingRepository
from dinebook_service.infrastructure.adapters.favorite_repository_adapter import FavoriteRepository
from dinebook_service.infrastructure.adapters.notification_adapter import LoggingNotificationService
from dinebook_service.infrastructure.adapters.restaurant_repository_adapter import RestaurantRepository
from dinebook_service.infrastructure.adapters.review_repository_adapter import ReviewRepository
from dinebook_service.infrastructure.adapters.user_repository_adapter import UserRepository
from dinebook_service.infrastructure.cache.memory_cache import (
    MemoryCache,
    get_availability_cache,
    get_bookings_cache,
)
from dinebook_service.infrastructure.database.session import get_db

settings = get_settings()


def get_user_repository() -> IUserRepository:
    """Dependency injection for user repository"""
    db = next(get_db())
    return UserRepository(db)


def get_restaurant_repository() -> IRestaurantRepository:
    """Dependency injection for restaurant repository"""
    db = next(get_db())
    return RestaurantRepository(db)


def get_booking_repository() -> IBookingRepository:
    """Dependency injection for booking repository"""
    db = next(get_db())
    return BookingRepository(db)


def get_review_repository() -> IReviewRepository:
    """Dependency injection for review repository"""
    db = next(get_db())
    return ReviewRepository(db)


def get_favorite_repository() -> IFavoriteRepository:
    """Dependency injection for favorite repository"""
    db = next(get_db())
    return FavoriteRepository(db)


def get_notification_service() -> INotificationService:
    return LoggingNotificationService(settings.notification_sender)


def get_booking_service(
    booking_repo: IBookingRepository = Depends(get_booking_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository),
    notification_service: INotificationService = Depends(get_notification_service),
    availability_cache: MemoryCache = Depends(get_availability_cache),
    bookings_cache: MemoryCache = Depends(get_bookings_cache)
) -> BookingService:
    """Dependency injection for booking service"""
    return BookingService(
        booking_repository=booking_repo,
        restaurant_repository=restaurant_repo,
        notification_service=notification_service,
        availability_cache=availability_cache,
        bookings_cache=bookings_cache,
        slot_interval_minutes=settings.slot_interval_minutes,
        max_party_size=settings.max_party_size
    )

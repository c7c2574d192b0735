"""
API v1 routes
"""
from fastapi import APIRouter

from dinebook_service.app.api.v1 import auth, bookings, favorites, menu, restaurants, reviews

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(menu.router, prefix="/restaurants/{restaurant_id}/menu", tags=["menu"])
router.include_router(restaurants.router, prefix="/restaurants", tags=["restaurants"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
router.include_router(favorites.router, prefix="/favorites", tags=["favorites"])

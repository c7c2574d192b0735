"""
Favorite restaurant endpoints (customers only)
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dinebook_service.app.api.v1.auth import require_customer
from dinebook_service.app.api.v1.dependencies import (
    get_favorite_repository,
    get_restaurant_repository,
)
from dinebook_service.app.api.v1.errors import http_error
from dinebook_service.app.api.v1.schemas import (
    FavoriteListResponse,
    FavoriteResponse,
    FavoriteStatusResponse,
    RestaurantResponse,
)
from dinebook_service.domain.entities.favorite import Favorite
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.favorite_port import IFavoriteRepository
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository
from dinebook_service.exceptions import NotFoundError
from dinebook_service.infrastructure.database.object_id import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=FavoriteListResponse)
async def list_favorites(
    current_user: User = Depends(require_customer),
    favorite_repo: IFavoriteRepository = Depends(get_favorite_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """The caller's favorites with a restaurant summary, newest first"""
    try:
        favorites = await favorite_repo.list_for_user(current_user.id)
        restaurants = await restaurant_repo.get_many([f.restaurant_id for f in favorites])
    except Exception as e:
        raise http_error(e, "Fetch favorites")

    return FavoriteListResponse(favorites=[
        FavoriteResponse(
            id=favorite.id,
            restaurant_id=favorite.restaurant_id,
            created_at=favorite.created_at,
            restaurant=RestaurantResponse.from_entity(restaurants[favorite.restaurant_id])
            if favorite.restaurant_id in restaurants else None
        )
        for favorite in favorites
    ])


@router.get("/{restaurant_id}/status", response_model=FavoriteStatusResponse)
async def get_favorite_status(
    restaurant_id: str,
    current_user: User = Depends(require_customer),
    favorite_repo: IFavoriteRepository = Depends(get_favorite_repository)
):
    """Whether the caller has favorited a restaurant"""
    try:
        validate_object_id(restaurant_id, "restaurant")
        favorite = await favorite_repo.get(current_user.id, restaurant_id)
    except Exception as e:
        raise http_error(e, "Fetch favorite status")
    return FavoriteStatusResponse(is_favorited=favorite is not None)


@router.post("/{restaurant_id}", response_model=FavoriteStatusResponse)
async def toggle_favorite(
    restaurant_id: str,
    current_user: User = Depends(require_customer),
    favorite_repo: IFavoriteRepository = Depends(get_favorite_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Add the restaurant to favorites, or remove it when already there"""
    try:
        validate_object_id(restaurant_id, "restaurant")
        restaurant = await restaurant_repo.get_by_id(restaurant_id)
        if not restaurant or not restaurant.is_active:
            raise NotFoundError("Restaurant not found")

        existing = await favorite_repo.get(current_user.id, restaurant_id)
        if existing:
            await favorite_repo.remove(existing.id)
            logger.info(f"User {current_user.id} unfavorited restaurant {restaurant_id}")
            return FavoriteStatusResponse(is_favorited=False)

        await favorite_repo.add(Favorite(user_id=current_user.id, restaurant_id=restaurant_id))
    except Exception as e:
        raise http_error(e, "Toggle favorite")

    logger.info(f"User {current_user.id} favorited restaurant {restaurant_id}")
    return JSONResponse(status_code=201, content={"is_favorited": True})

"""
Menu endpoints, nested under a restaurant
"""
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, status

from dinebook_service.app.api.v1.auth import get_current_user, require_owner
from dinebook_service.app.api.v1.dependencies import get_restaurant_repository
from dinebook_service.app.api.v1.errors import http_error
from dinebook_service.app.api.v1.schemas import (
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MessageResponse,
)
from dinebook_service.domain.entities.restaurant import MenuItem, Restaurant
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository
from dinebook_service.exceptions import AuthorizationError, NotFoundError
from dinebook_service.infrastructure.cache.memory_cache import invalidate_restaurant
from dinebook_service.infrastructure.database.object_id import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_restaurant(restaurant_repo: IRestaurantRepository, restaurant_id: str) -> Restaurant:
    validate_object_id(restaurant_id, "restaurant")
    restaurant = await restaurant_repo.get_by_id(restaurant_id)
    if not restaurant:
        raise NotFoundError("Restaurant not found")
    if not restaurant.is_active:
        raise NotFoundError("Restaurant is not available")
    return restaurant


async def _get_owned_restaurant(
    restaurant_repo: IRestaurantRepository,
    restaurant_id: str,
    owner: User
) -> Restaurant:
    restaurant = await _get_restaurant(restaurant_repo, restaurant_id)
    if not restaurant.is_owned_by(owner.id):
        raise AuthorizationError("You don't have permission to manage this menu")
    return restaurant


@router.get("", response_model=List[MenuItemResponse])
async def get_menu(
    restaurant_id: str,
    current_user: User = Depends(get_current_user),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """List the menu of a restaurant"""
    try:
        restaurant = await _get_restaurant(restaurant_repo, restaurant_id)
    except Exception as e:
        raise http_error(e, "Fetch menu")
    return [MenuItemResponse.from_entity(item) for item in restaurant.menu_items]


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def add_menu_item(
    restaurant_id: str,
    data: MenuItemCreate,
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Add a menu item"""
    try:
        await _get_owned_restaurant(restaurant_repo, restaurant_id, current_user)
        item = MenuItem(**{**data.model_dump(), "category": data.category.value})
        item = await restaurant_repo.add_menu_item(restaurant_id, item)
    except Exception as e:
        raise http_error(e, "Add menu item")

    invalidate_restaurant(restaurant_id)
    logger.info(f"Menu item {item.id} added to restaurant {restaurant_id}")
    return MenuItemResponse.from_entity(item)


@router.put("/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    restaurant_id: str,
    item_id: str,
    data: MenuItemUpdate,
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Partially update a menu item"""
    try:
        restaurant = await _get_owned_restaurant(restaurant_repo, restaurant_id, current_user)
        validate_object_id(item_id, "menu item")
        item = restaurant.find_menu_item(item_id)
        if not item:
            raise NotFoundError("Menu item not found")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "category" in changes:
            changes["category"] = data.category.value
        for field, value in changes.items():
            setattr(item, field, value)
        item.updated_at = datetime.utcnow()

        if not await restaurant_repo.update_menu_item(restaurant_id, item):
            raise NotFoundError("Menu item not found")
    except Exception as e:
        raise http_error(e, "Update menu item")

    invalidate_restaurant(restaurant_id)
    return MenuItemResponse.from_entity(item)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_menu_item(
    restaurant_id: str,
    item_id: str,
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Remove a menu item"""
    try:
        await _get_owned_restaurant(restaurant_repo, restaurant_id, current_user)
        validate_object_id(item_id, "menu item")
        if not await restaurant_repo.delete_menu_item(restaurant_id, item_id):
            raise NotFoundError("Menu item not found")
    except Exception as e:
        raise http_error(e, "Delete menu item")

    invalidate_restaurant(restaurant_id)
    logger.info(f"Menu item {item_id} removed from restaurant {restaurant_id}")
    return MessageResponse(message="Menu item deleted successfully")

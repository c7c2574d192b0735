"""
Restaurant repository port (interface)
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dinebook_service.domain.entities.restaurant import MenuItem, Restaurant


@dataclass
class RestaurantQuery:
    """Filters for public restaurant listings (active restaurants only)"""
    cuisine: Optional[str] = None
    price_range: Optional[int] = None
    location: Optional[str] = None


class IRestaurantRepository(ABC):
    """Restaurant repository interface"""

    @abstractmethod
    async def create(self, restaurant: Restaurant) -> Restaurant:
        """Create new restaurant"""
        pass

    @abstractmethod
    async def get_by_id(self, restaurant_id: str) -> Optional[Restaurant]:
        """Get restaurant by ID, whether active or not"""
        pass

    @abstractmethod
    async def get_many(self, restaurant_ids: List[str]) -> Dict[str, Restaurant]:
        """Get restaurants by ID, keyed by ID"""
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[Restaurant]:
        """List an owner's active restaurants, newest first"""
        pass

    @abstractmethod
    async def search(
        self,
        query: RestaurantQuery,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Restaurant], int]:
        """Active restaurants matching the query sorted by name, plus the total count"""
        pass

    @abstractmethod
    async def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        query: RestaurantQuery,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Restaurant], int]:
        """Active restaurants within radius sorted by distance, plus the total count.

        Raises GeoQueryError when the geospatial query cannot run.
        """
        pass

    @abstractmethod
    async def update(self, restaurant: Restaurant) -> Restaurant:
        """Update restaurant profile fields"""
        pass

    @abstractmethod
    async def set_average_rating(self, restaurant_id: str, average_rating: float) -> None:
        """Store the denormalized average rating"""
        pass

    @abstractmethod
    async def add_menu_item(self, restaurant_id: str, item: MenuItem) -> MenuItem:
        """Append a menu item"""
        pass

    @abstractmethod
    async def update_menu_item(self, restaurant_id: str, item: MenuItem) -> bool:
        """Replace a menu item, False if it does not exist"""
        pass

    @abstractmethod
    async def delete_menu_item(self, restaurant_id: str, item_id: str) -> bool:
        """Remove a menu item, False if it does not exist"""
        pass

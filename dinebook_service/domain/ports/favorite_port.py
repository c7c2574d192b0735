"""
Favorite repository port (interface)
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from dinebook_service.domain.entities.favorite import Favorite


class IFavoriteRepository(ABC):
    """Favorite repository interface"""

    @abstractmethod
    async def get(self, user_id: str, restaurant_id: str) -> Optional[Favorite]:
        """Get the favorite for a (user, restaurant) pair"""
        pass

    @abstractmethod
    async def add(self, favorite: Favorite) -> Favorite:
        """Add favorite, raising ConflictError if the pair already exists"""
        pass

    @abstractmethod
    async def remove(self, favorite_id: str) -> bool:
        """Remove favorite"""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[Favorite]:
        """List a user's favorites, newest first"""
        pass

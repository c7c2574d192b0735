"""
Favorite repository adapter (MongoDB implementation)
"""
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from dinebook_service.domain.entities.favorite import Favorite
from dinebook_service.domain.ports.favorite_port import IFavoriteRepository
from dinebook_service.exceptions import ConflictError
from dinebook_service.infrastructure.database.object_id import to_object_id


class FavoriteRepository(IFavoriteRepository):
    """MongoDB implementation of favorite repository"""

    def __init__(self, db: Database):
        self.collection = db.favorites

    def _to_entity(self, doc: dict) -> Favorite:
        return Favorite(
            id=str(doc["_id"]),
            user_id=str(doc["user_id"]),
            restaurant_id=str(doc["restaurant_id"]),
            created_at=doc.get("created_at")
        )

    async def get(self, user_id: str, restaurant_id: str) -> Optional[Favorite]:
        """Get favorite for a pair"""
        doc = self.collection.find_one({
            "user_id": to_object_id(user_id),
            "restaurant_id": to_object_id(restaurant_id),
        })
        return self._to_entity(doc) if doc else None

    async def add(self, favorite: Favorite) -> Favorite:
        """Add favorite"""
        doc = {
            "user_id": to_object_id(favorite.user_id),
            "restaurant_id": to_object_id(favorite.restaurant_id),
            "created_at": favorite.created_at,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("Restaurant is already in favorites") from e
        doc["_id"] = result.inserted_id
        return self._to_entity(doc)

    async def remove(self, favorite_id: str) -> bool:
        """Remove favorite"""
        result = self.collection.delete_one({"_id": to_object_id(favorite_id)})
        return result.deleted_count > 0

    async def list_for_user(self, user_id: str) -> List[Favorite]:
        """List favorites"""
        cursor = self.collection.find({"user_id": to_object_id(user_id)}).sort("created_at", DESCENDING)
        return [self._to_entity(doc) for doc in cursor]

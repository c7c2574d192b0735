"""
Restaurant repository adapter (MongoDB implementation)
"""
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import OperationFailure

from dinebook_service.domain.entities.restaurant import (
    Address,
    DayHours,
    GeoPoint,
    MenuItem,
    Restaurant,
)
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository, RestaurantQuery
from dinebook_service.exceptions import GeoQueryError
from dinebook_service.infrastructure.database.object_id import to_object_id, to_object_ids

logger = logging.getLogger(__name__)


class RestaurantRepository(IRestaurantRepository):
    """MongoDB implementation of restaurant repository"""

    def __init__(self, db: Database):
        self.collection = db.restaurants

    # Mapping

    def _menu_item_to_entity(self, doc: dict) -> MenuItem:
        return MenuItem(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            description=doc.get("description") or "",
            price=float(doc.get("price", 0)),
            category=doc.get("category", "Other"),
            image_url=doc.get("image_url") or "",
            is_vegetarian=doc.get("is_vegetarian", False),
            is_vegan=doc.get("is_vegan", False),
            is_gluten_free=doc.get("is_gluten_free", False),
            is_available=doc.get("is_available", True),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at")
        )

    def _menu_item_to_document(self, item: MenuItem) -> dict:
        return {
            "_id": ObjectId(item.id) if item.id else ObjectId(),
            "name": item.name,
            "description": item.description,
            "price": item.price,
            "category": item.category,
            "image_url": item.image_url,
            "is_vegetarian": item.is_vegetarian,
            "is_vegan": item.is_vegan,
            "is_gluten_free": item.is_gluten_free,
            "is_available": item.is_available,
            "created_at": item.created_at,
            "updated_at": item.updated_at
        }

    def _to_entity(self, doc: dict) -> Restaurant:
        """Convert database document to domain entity"""
        address = doc.get("address")
        return Restaurant(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            cuisine=doc.get("cuisine", "Other"),
            location=doc.get("location", ""),
            coordinates=GeoPoint.from_geojson(doc.get("geometry")),
            address=Address(**address) if address else None,
            price_range=doc.get("price_range", 1),
            description=doc.get("description"),
            phone_number=doc.get("phone_number"),
            email=doc.get("email"),
            capacity=doc.get("capacity", 50),
            opening_hours={
                day: DayHours(open=hours.get("open"), close=hours.get("close"))
                for day, hours in (doc.get("opening_hours") or {}).items()
                if hours
            },
            menu_items=[self._menu_item_to_entity(item) for item in doc.get("menu_items") or []],
            is_active=doc.get("is_active", True),
            owner_id=str(doc["owner_id"]) if doc.get("owner_id") else None,
            average_rating=doc.get("average_rating", 0.0),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
            distance=doc.get("distance")
        )

    def _profile_fields(self, entity: Restaurant) -> dict:
        """Fields an owner may change on the profile"""
        return {
            "name": entity.name,
            "cuisine": entity.cuisine,
            "location": entity.location,
            "address": vars(entity.address) if entity.address else None,
            "price_range": entity.price_range,
            "description": entity.description,
            "phone_number": entity.phone_number,
            "email": entity.email,
            "capacity": entity.capacity,
            "opening_hours": {
                day: {"open": hours.open, "close": hours.close}
                for day, hours in entity.opening_hours.items()
            },
            "is_active": entity.is_active,
        }

    def _to_document(self, entity: Restaurant) -> dict:
        """Convert domain entity to database document"""
        doc = self._profile_fields(entity)
        doc.update({
            "menu_items": [self._menu_item_to_document(item) for item in entity.menu_items],
            "owner_id": ObjectId(entity.owner_id) if entity.owner_id else None,
            "average_rating": entity.average_rating,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        })
        if entity.coordinates:
            doc["geometry"] = entity.coordinates.to_geojson()
        return doc

    def _match_filter(self, query: RestaurantQuery) -> dict:
        match: dict = {"is_active": True}
        if query.cuisine:
            match["cuisine"] = query.cuisine
        if query.price_range is not None:
            match["price_range"] = query.price_range
        if query.location:
            match["location"] = {"$regex": re.escape(query.location), "$options": "i"}
        return match

    # Reads

    async def create(self, restaurant: Restaurant) -> Restaurant:
        """Create new restaurant"""
        doc = self._to_document(restaurant)
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._to_entity(doc)

    async def get_by_id(self, restaurant_id: str) -> Optional[Restaurant]:
        """Get restaurant by ID"""
        doc = self.collection.find_one({"_id": to_object_id(restaurant_id)})
        return self._to_entity(doc) if doc else None

    async def get_many(self, restaurant_ids: List[str]) -> Dict[str, Restaurant]:
        """Get restaurants by ID"""
        ids = to_object_ids(list(set(restaurant_ids)))
        if not ids:
            return {}
        return {
            str(doc["_id"]): self._to_entity(doc)
            for doc in self.collection.find({"_id": {"$in": ids}})
        }

    async def list_by_owner(self, owner_id: str) -> List[Restaurant]:
        """List an owner's active restaurants"""
        cursor = self.collection.find(
            {"owner_id": to_object_id(owner_id), "is_active": True}
        ).sort("created_at", DESCENDING)
        return [self._to_entity(doc) for doc in cursor]

    async def search(
        self,
        query: RestaurantQuery,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Restaurant], int]:
        """Text/filter search over active restaurants"""
        match = self._match_filter(query)
        cursor = self.collection.find(match).sort("name", ASCENDING).skip(skip).limit(limit)
        restaurants = [self._to_entity(doc) for doc in cursor]
        total = self.collection.count_documents(match)
        return restaurants, total

    async def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        query: RestaurantQuery,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Restaurant], int]:
        """Distance-bounded $geoNear over active restaurants"""
        geo_near = {
            "$geoNear": {
                "near": {"type": "Point", "coordinates": [longitude, latitude]},
                "distanceField": "distance",
                "maxDistance": radius_km * 1000,
                "spherical": True,
                "query": self._match_filter(query),
                "key": "geometry",
            }
        }
        try:
            docs = list(self.collection.aggregate([
                geo_near,
                {"$sort": {"distance": 1}},
                {"$skip": skip},
                {"$limit": limit},
            ]))
            counted = list(self.collection.aggregate([geo_near, {"$count": "total"}]))
        except OperationFailure as e:
            raise GeoQueryError(f"Geospatial query failed: {e}") from e
        total = counted[0]["total"] if counted else 0
        return [self._to_entity(doc) for doc in docs], total

    # Writes

    async def update(self, restaurant: Restaurant) -> Restaurant:
        """Update restaurant profile fields"""
        restaurant.updated_at = datetime.utcnow()
        update: dict = {"$set": {**self._profile_fields(restaurant), "updated_at": restaurant.updated_at}}
        if restaurant.coordinates:
            update["$set"]["geometry"] = restaurant.coordinates.to_geojson()
        else:
            update["$unset"] = {"geometry": ""}
        self.collection.update_one({"_id": to_object_id(restaurant.id)}, update)
        return restaurant

    async def set_average_rating(self, restaurant_id: str, average_rating: float) -> None:
        """Store the denormalized average rating"""
        self.collection.update_one(
            {"_id": to_object_id(restaurant_id)},
            {"$set": {"average_rating": average_rating}}
        )

    async def add_menu_item(self, restaurant_id: str, item: MenuItem) -> MenuItem:
        """Append a menu item"""
        doc = self._menu_item_to_document(item)
        self.collection.update_one(
            {"_id": to_object_id(restaurant_id)},
            {"$push": {"menu_items": doc}, "$set": {"updated_at": datetime.utcnow()}}
        )
        return self._menu_item_to_entity(doc)

    async def update_menu_item(self, restaurant_id: str, item: MenuItem) -> bool:
        """Replace a menu item in place"""
        if not item.id or not ObjectId.is_valid(item.id):
            return False
        result = self.collection.update_one(
            {"_id": to_object_id(restaurant_id), "menu_items._id": ObjectId(item.id)},
            {"$set": {"menu_items.$": self._menu_item_to_document(item)}}
        )
        return result.matched_count > 0

    async def delete_menu_item(self, restaurant_id: str, item_id: str) -> bool:
        """Remove a menu item"""
        if not ObjectId.is_valid(item_id):
            return False
        result = self.collection.update_one(
            {"_id": to_object_id(restaurant_id)},
            {"$pull": {"menu_items": {"_id": ObjectId(item_id)}}}
        )
        return result.modified_count > 0

"""
Review repository adapter (MongoDB implementation)
"""
from datetime import datetime
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from dinebook_service.domain.entities.review import Review
from dinebook_service.domain.ports.review_port import IReviewRepository
from dinebook_service.exceptions import ConflictError
from dinebook_service.infrastructure.database.object_id import to_object_id


class ReviewRepository(IReviewRepository):
    """MongoDB implementation of review repository.

    One review per (customer, restaurant) is enforced by the unique
    ``customer_restaurant_unique`` index.
    """

    def __init__(self, db: Database):
        self.collection = db.reviews

    def _to_entity(self, doc: dict) -> Review:
        """Convert database document to domain entity"""
        return Review(
            id=str(doc["_id"]),
            customer_id=str(doc["customer_id"]),
            restaurant_id=str(doc["restaurant_id"]),
            rating=doc["rating"],
            comment=doc.get("comment") or "",
            owner_reply=doc.get("owner_reply"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at")
        )

    def _to_document(self, entity: Review) -> dict:
        """Convert domain entity to database document"""
        return {
            "customer_id": to_object_id(entity.customer_id),
            "restaurant_id": to_object_id(entity.restaurant_id),
            "rating": entity.rating,
            "comment": entity.comment,
            "owner_reply": entity.owner_reply,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at
        }

    async def create(self, review: Review) -> Review:
        """Create review"""
        doc = self._to_document(review)
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("You have already reviewed this restaurant") from e
        doc["_id"] = result.inserted_id
        return self._to_entity(doc)

    async def get_by_id(self, review_id: str) -> Optional[Review]:
        """Get review by ID"""
        doc = self.collection.find_one({"_id": to_object_id(review_id)})
        return self._to_entity(doc) if doc else None

    async def update(self, review: Review) -> Review:
        """Update rating, comment and reply"""
        review.updated_at = review.updated_at or datetime.utcnow()
        self.collection.update_one(
            {"_id": to_object_id(review.id)},
            {"$set": {
                "rating": review.rating,
                "comment": review.comment,
                "owner_reply": review.owner_reply,
                "updated_at": review.updated_at,
            }}
        )
        return review

    async def delete(self, review_id: str) -> bool:
        """Delete review"""
        result = self.collection.delete_one({"_id": to_object_id(review_id)})
        return result.deleted_count > 0

    async def list_for_restaurant(self, restaurant_id: str) -> List[Review]:
        """List reviews of a restaurant"""
        cursor = self.collection.find(
            {"restaurant_id": to_object_id(restaurant_id)}
        ).sort("created_at", DESCENDING)
        return [self._to_entity(doc) for doc in cursor]

    async def list_for_customer(self, customer_id: str) -> List[Review]:
        """List a customer's reviews"""
        cursor = self.collection.find(
            {"customer_id": to_object_id(customer_id)}
        ).sort("created_at", DESCENDING)
        return [self._to_entity(doc) for doc in cursor]

    async def count_for_restaurant(self, restaurant_id: str) -> int:
        """Count reviews of a restaurant"""
        return self.collection.count_documents({"restaurant_id": to_object_id(restaurant_id)})

    async def average_rating(self, restaurant_id: str) -> float:
        """Average rating via aggregation"""
        result = list(self.collection.aggregate([
            {"$match": {"restaurant_id": to_object_id(restaurant_id)}},
            {"$group": {"_id": None, "avg_rating": {"$avg": "$rating"}}},
        ]))
        if not result or result[0]["avg_rating"] is None:
            return 0.0
        return round(float(result[0]["avg_rating"]), 2)

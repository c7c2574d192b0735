"""
User repository adapter (MongoDB implementation)
"""
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.user_port import IUserRepository
from dinebook_service.exceptions import ConflictError
from dinebook_service.infrastructure.database.object_id import to_object_ids


class UserRepository(IUserRepository):
    """MongoDB implementation of user repository"""

    def __init__(self, db: Database):
        self.collection = db.users

    def _to_entity(self, doc: dict) -> User:
        """Convert database document to domain entity"""
        return User(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            email=doc.get("email", ""),
            hashed_password=doc.get("hashed_password", ""),
            role=doc.get("role", "customer"),
            is_active=doc.get("is_active", True),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at")
        )

    def _to_document(self, entity: User) -> dict:
        """Convert domain entity to database document"""
        return {
            "name": entity.name,
            "email": entity.email.lower(),
            "hashed_password": entity.hashed_password,
            "role": entity.role,
            "is_active": entity.is_active,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at
        }

    async def create(self, user: User) -> User:
        """Create new user"""
        doc = self._to_document(user)
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("Email already registered") from e
        doc["_id"] = result.inserted_id
        return self._to_entity(doc)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        if not ObjectId.is_valid(user_id):
            return None
        doc = self.collection.find_one({"_id": ObjectId(user_id)})
        return self._to_entity(doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by e-mail"""
        doc = self.collection.find_one({"email": email.lower()})
        return self._to_entity(doc) if doc else None

    async def get_many(self, user_ids: List[str]) -> Dict[str, User]:
        """Get users by ID"""
        ids = to_object_ids(list(set(user_ids)))
        if not ids:
            return {}
        return {
            str(doc["_id"]): self._to_entity(doc)
            for doc in self.collection.find({"_id": {"$in": ids}})
        }

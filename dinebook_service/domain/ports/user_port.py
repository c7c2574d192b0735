"""
User repository port (interface)
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from dinebook_service.domain.entities.user import User


class IUserRepository(ABC):
    """User repository interface"""

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create new user, raising ConflictError when the e-mail is taken"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by e-mail"""
        pass

    @abstractmethod
    async def get_many(self, user_ids: List[str]) -> Dict[str, User]:
        """Get users by ID, keyed by ID"""
        pass

"""
Authentication service port (interface)
"""
from abc import ABC, abstractmethod
from typing import Optional

from dinebook_service.domain.entities.user import User


class IAuthenticationService(ABC):
    """Authentication service interface"""

    @abstractmethod
    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate user with e-mail and password"""
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by e-mail"""
        pass

    @abstractmethod
    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: str
    ) -> User:
        """Create new user"""
        pass

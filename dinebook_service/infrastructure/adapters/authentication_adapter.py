"""
Authentication service adapter
"""
from typing import Optional

import bcrypt

from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.authentication_port import IAuthenticationService
from dinebook_service.domain.ports.user_port import IUserRepository


def truncate_password_for_bcrypt(password: str) -> str:
    """Truncate password to 72 bytes for bcrypt compatibility"""
    if isinstance(password, bytes):
        password = password.decode('utf-8', errors='ignore')
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        password = password_bytes[:72].decode('utf-8', errors='ignore')
    return password


def get_password_hash(password: str) -> str:
    """Hash password using bcrypt"""
    truncated_password = truncate_password_for_bcrypt(password)
    hashed = bcrypt.hashpw(truncated_password.encode('utf-8'), bcrypt.gensalt())
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against a bcrypt hash"""
    try:
        truncated_password = truncate_password_for_bcrypt(plain_password)
        return bcrypt.checkpw(truncated_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


class AuthenticationService(IAuthenticationService):
    """Authentication service implementation"""

    def __init__(self, user_repository: IUserRepository):
        self.user_repository = user_repository

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate user with e-mail and password"""
        user = await self.user_repository.get_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return await self.user_repository.get_by_id(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by e-mail"""
        return await self.user_repository.get_by_email(email)

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: str
    ) -> User:
        """Create new user with a hashed password"""
        user = User(
            name=name,
            email=email.lower(),
            hashed_password=get_password_hash(password),
            role=role
        )
        return await self.user_repository.create(user)

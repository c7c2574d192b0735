"""
User entity (DDD Aggregate Root)
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

ROLE_CUSTOMER = "customer"
ROLE_OWNER = "owner"
ROLES = (ROLE_CUSTOMER, ROLE_OWNER)


@dataclass
class User:
    """User aggregate root"""
    id: Optional[str] = None
    name: str = ""
    email: str = ""
    hashed_password: str = ""
    role: str = ROLE_CUSTOMER
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER

    @property
    def is_customer(self) -> bool:
        return self.role == ROLE_CUSTOMER

    def deactivate(self):
        """Deactivate user"""
        self.is_active = False
        self.updated_at = datetime.utcnow()

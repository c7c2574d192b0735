"""
Favorite entity
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Favorite:
    """A (user, restaurant) pair, unique together"""
    id: Optional[str] = None
    user_id: str = ""
    restaurant_id: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)

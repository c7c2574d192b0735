"""
Review entity (DDD Aggregate Root)
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Review:
    """Review aggregate root"""
    id: Optional[str] = None
    customer_id: str = ""
    restaurant_id: str = ""
    rating: int = 5
    comment: str = ""
    owner_reply: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    def update(self, rating: Optional[int] = None, comment: Optional[str] = None):
        """Update rating and/or comment"""
        if rating is not None:
            self.rating = rating
        if comment is not None:
            self.comment = comment
        self.updated_at = datetime.utcnow()

    def set_reply(self, reply: Optional[str]):
        """Set or clear the owner's reply"""
        self.owner_reply = reply
        self.updated_at = datetime.utcnow()

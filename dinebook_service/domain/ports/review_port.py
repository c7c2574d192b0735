"""
Review repository port (interface)
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from dinebook_service.domain.entities.review import Review


class IReviewRepository(ABC):
    """Review repository interface"""

    @abstractmethod
    async def create(self, review: Review) -> Review:
        """Create review, raising ConflictError if the customer already reviewed the restaurant"""
        pass

    @abstractmethod
    async def get_by_id(self, review_id: str) -> Optional[Review]:
        """Get review by ID"""
        pass

    @abstractmethod
    async def update(self, review: Review) -> Review:
        """Update review"""
        pass

    @abstractmethod
    async def delete(self, review_id: str) -> bool:
        """Delete review"""
        pass

    @abstractmethod
    async def list_for_restaurant(self, restaurant_id: str) -> List[Review]:
        """List reviews of a restaurant, newest first"""
        pass

    @abstractmethod
    async def list_for_customer(self, customer_id: str) -> List[Review]:
        """List reviews written by a customer, newest first"""
        pass

    @abstractmethod
    async def count_for_restaurant(self, restaurant_id: str) -> int:
        """Count reviews of a restaurant"""
        pass

    @abstractmethod
    async def average_rating(self, restaurant_id: str) -> float:
        """Average rating of a restaurant, 0 when it has no reviews"""
        pass

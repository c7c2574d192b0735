"""
Database client management
"""
import logging
from typing import Generator, Optional

from pymongo import ASCENDING, DESCENDING, GEOSPHERE, MongoClient
from pymongo.database import Database

from dinebook_service.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    """Get the process-wide MongoDB client (created lazily, connects on first use)"""
    global _client
    if _client is None:
        _client = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
            tz_aware=False,
        )
    return _client


def get_db() -> Generator[Database, None, None]:
    """Get database handle"""
    yield get_client()[settings.database_name]


def close_client():
    """Close the MongoDB client"""
    global _client
    if _client is not None:
        _client.close()
        _client = None


def ensure_indexes(db: Database):
    """Create the indexes the service relies on"""
    db.restaurants.create_index([("geometry", GEOSPHERE)], name="geometry_2dsphere", sparse=True)
    db.restaurants.create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])
    db.restaurants.create_index([("is_active", ASCENDING), ("name", ASCENDING)])

    db.bookings.create_index(
        [("restaurant_id", ASCENDING), ("date", ASCENDING), ("time", ASCENDING), ("status", ASCENDING)]
    )
    db.bookings.create_index([("customer_id", ASCENDING), ("created_at", DESCENDING)])
    db.booking_slots.create_index(
        [("restaurant_id", ASCENDING), ("date", ASCENDING), ("time", ASCENDING)],
        unique=True,
        name="slot_unique"
    )

    db.reviews.create_index(
        [("customer_id", ASCENDING), ("restaurant_id", ASCENDING)],
        unique=True,
        name="customer_restaurant_unique"
    )
    db.reviews.create_index([("restaurant_id", ASCENDING), ("created_at", DESCENDING)])

    db.favorites.create_index(
        [("user_id", ASCENDING), ("restaurant_id", ASCENDING)],
        unique=True,
        name="user_restaurant_unique"
    )

    db.users.create_index([("email", ASCENDING)], unique=True, name="email_unique")
    logger.info("MongoDB indexes ensured")

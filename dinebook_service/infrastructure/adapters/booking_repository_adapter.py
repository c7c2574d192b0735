"""
Booking repository adapter (MongoDB implementation)
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from dinebook_service.domain.entities.booking import (
    ACTIVE_STATUSES,
    Booking,
    MonthlyBookingStats,
)
from dinebook_service.domain.ports.booking_port import IBookingRepository
from dinebook_service.exceptions import CapacityExceededError
from dinebook_service.infrastructure.database.object_id import to_object_id

logger = logging.getLogger(__name__)


class BookingRepository(IBookingRepository):
    """MongoDB implementation of booking repository"""

    def __init__(self, db: Database):
        self.client = db.client
        self.collection = db.bookings
        # One document per restaurant/date/time, bumped inside every booking
        # transaction so concurrent bookings for a slot write-conflict.
        self.slots = db.booking_slots

    def _to_entity(self, doc: dict) -> Booking:
        """Convert database document to domain entity"""
        return Booking(
            id=str(doc["_id"]),
            customer_id=str(doc["customer_id"]),
            restaurant_id=str(doc["restaurant_id"]),
            date=doc["date"],
            time=doc["time"],
            guests=doc["guests"],
            special_requests=doc.get("special_requests"),
            status=doc.get("status", "confirmed"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at")
        )

    def _to_document(self, entity: Booking) -> dict:
        """Convert domain entity to database document"""
        return {
            "customer_id": to_object_id(entity.customer_id),
            "restaurant_id": to_object_id(entity.restaurant_id),
            "date": entity.date,
            "time": entity.time,
            "guests": entity.guests,
            "special_requests": entity.special_requests,
            "status": entity.status,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at
        }

    def _sum_guests(self, match: dict, session: Optional[ClientSession] = None) -> int:
        result = list(self.collection.aggregate(
            [
                {"$match": match},
                {"$group": {"_id": None, "total_guests": {"$sum": "$guests"}}},
            ],
            session=session
        ))
        return result[0]["total_guests"] if result else 0

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        """Get booking by ID"""
        doc = self.collection.find_one({"_id": to_object_id(booking_id)})
        return self._to_entity(doc) if doc else None

    async def booked_guests_by_time(self, restaurant_id: str, date: str) -> Dict[str, int]:
        """Guests per time label for confirmed/pending bookings"""
        rows = self.collection.aggregate([
            {
                "$match": {
                    "restaurant_id": to_object_id(restaurant_id),
                    "date": date,
                    "status": {"$in": list(ACTIVE_STATUSES)},
                }
            },
            {"$group": {"_id": "$time", "guests": {"$sum": "$guests"}}},
        ])
        return {row["_id"]: row["guests"] for row in rows}

    def _insert_in_transaction(self, session: ClientSession, doc: dict, capacity: int) -> ObjectId:
        slot = {"restaurant_id": doc["restaurant_id"], "date": doc["date"], "time": doc["time"]}
        self.slots.update_one(
            slot,
            {"$inc": {"version": 1}, "$set": {"updated_at": datetime.utcnow()}},
            upsert=True,
            session=session
        )

        booked_guests = self._sum_guests({**slot, "status": {"$in": list(ACTIVE_STATUSES)}}, session)
        available_capacity = capacity - booked_guests
        if doc["guests"] > available_capacity:
            raise CapacityExceededError(available_capacity)

        # Copy so a driver retry never reuses an _id from an aborted attempt
        result = self.collection.insert_one(dict(doc), session=session)
        return result.inserted_id

    async def insert_within_capacity(self, booking: Booking, capacity: int) -> Booking:
        """Capacity check and insert in one transaction"""
        doc = self._to_document(booking)
        try:
            with self.client.start_session() as session:
                inserted_id = session.with_transaction(
                    lambda s: self._insert_in_transaction(s, doc, capacity),
                    read_concern=ReadConcern("snapshot"),
                    write_concern=WriteConcern("majority"),
                )
        except PyMongoError:
            logger.error(
                f"Booking transaction rolled back for restaurant {booking.restaurant_id} "
                f"at {booking.date} {booking.time}",
                exc_info=True
            )
            raise
        doc["_id"] = inserted_id
        return self._to_entity(doc)

    async def update(self, booking: Booking) -> Booking:
        """Update booking status"""
        booking.updated_at = booking.updated_at or datetime.utcnow()
        self.collection.update_one(
            {"_id": to_object_id(booking.id)},
            {"$set": {"status": booking.status, "updated_at": booking.updated_at}}
        )
        return booking

    async def list_for_customer(
        self,
        customer_id: str,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None
    ) -> List[Booking]:
        """List a customer's bookings"""
        match: dict = {"customer_id": to_object_id(customer_id)}
        if status:
            match["status"] = status
        if date_from or date_to:
            match["date"] = {}
            if date_from:
                match["date"]["$gte"] = date_from
            if date_to:
                match["date"]["$lte"] = date_to
        cursor = self.collection.find(match).sort("created_at", DESCENDING)
        return [self._to_entity(doc) for doc in cursor]

    async def list_for_restaurant(
        self,
        restaurant_id: str,
        status: Optional[str] = None,
        date: Optional[str] = None,
        limit: int = 10
    ) -> List[Booking]:
        """List a restaurant's bookings"""
        match: dict = {"restaurant_id": to_object_id(restaurant_id)}
        if status:
            match["status"] = status
        if date:
            match["date"] = date
        cursor = self.collection.find(match).sort("created_at", DESCENDING).limit(limit)
        return [self._to_entity(doc) for doc in cursor]

    async def count(
        self,
        restaurant_id: str,
        statuses: Optional[Sequence[str]] = None,
        date: Optional[str] = None,
        date_from: Optional[str] = None
    ) -> int:
        """Count bookings of a restaurant"""
        match: dict = {"restaurant_id": to_object_id(restaurant_id)}
        if statuses:
            match["status"] = {"$in": list(statuses)}
        if date:
            match["date"] = date
        elif date_from:
            match["date"] = {"$gte": date_from}
        return self.collection.count_documents(match)

    async def total_guests(self, restaurant_id: str, statuses: Sequence[str]) -> int:
        """Sum of guests"""
        return self._sum_guests({
            "restaurant_id": to_object_id(restaurant_id),
            "status": {"$in": list(statuses)},
        })

    async def monthly_stats(
        self,
        restaurant_id: str,
        statuses: Sequence[str],
        since: datetime
    ) -> List[MonthlyBookingStats]:
        """Bookings and guests per creation month"""
        rows = self.collection.aggregate([
            {
                "$match": {
                    "restaurant_id": to_object_id(restaurant_id),
                    "status": {"$in": list(statuses)},
                    "created_at": {"$gte": since},
                }
            },
            {
                "$group": {
                    "_id": {"year": {"$year": "$created_at"}, "month": {"$month": "$created_at"}},
                    "count": {"$sum": 1},
                    "guests": {"$sum": "$guests"},
                }
            },
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ])
        return [
            MonthlyBookingStats(
                year=row["_id"]["year"],
                month=row["_id"]["month"],
                bookings=row["count"],
                guests=row["guests"]
            )
            for row in rows
        ]

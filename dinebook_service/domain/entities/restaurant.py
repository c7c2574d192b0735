"""
Restaurant entity (DDD Aggregate Root) with its menu and opening hours
"""
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Cuisine(str, Enum):
    ITALIAN = "Italian"
    INDIAN = "Indian"
    CHINESE = "Chinese"
    MEXICAN = "Mexican"
    AMERICAN = "American"
    THAI = "Thai"
    JAPANESE = "Japanese"
    MEDITERRANEAN = "Mediterranean"
    FRENCH = "French"
    OTHER = "Other"


class MenuCategory(str, Enum):
    APPETIZERS = "Appetizers"
    MAINS = "Mains"
    DESSERTS = "Desserts"
    BEVERAGES = "Beverages"
    SALADS = "Salads"
    SOUPS = "Soups"
    SPECIALS = "Specials"
    OTHER = "Other"


def is_valid_time(value: str) -> bool:
    """Check a HH:MM (24h) time label"""
    return bool(value) and bool(TIME_PATTERN.match(value))


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD date, raising ValueError on anything else"""
    if not value or not DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date format: {value!r}, expected YYYY-MM-DD")
    return datetime.strptime(value, "%Y-%m-%d").date()


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    return f"{value // 60:02d}:{value % 60:02d}"


def day_of_week(value: str) -> str:
    """Lowercase English weekday name for a YYYY-MM-DD date"""
    return WEEKDAYS[parse_date(value).weekday()]


def generate_time_slots(open_time: str, close_time: str, interval_minutes: int = 30) -> List[str]:
    """Slot labels from open (inclusive) to close (exclusive)"""
    if interval_minutes <= 0:
        raise ValueError("Slot interval must be positive")
    start = time_to_minutes(open_time)
    end = time_to_minutes(close_time)
    return [minutes_to_time(t) for t in range(start, end, interval_minutes)]


def is_time_within_hours(value: str, open_time: str, close_time: str) -> bool:
    """True when open <= value < close"""
    return time_to_minutes(open_time) <= time_to_minutes(value) < time_to_minutes(close_time)


@dataclass
class DayHours:
    """Opening hours for a single weekday"""
    open: Optional[str] = None
    close: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return not self.open or not self.close or self.open == self.close


@dataclass
class GeoPoint:
    """Geographic coordinate value object"""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not validate_coordinates(self.latitude, self.longitude):
            raise ValueError("Invalid latitude or longitude values")

    def to_geojson(self) -> dict:
        # GeoJSON order is [longitude, latitude]
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    @classmethod
    def from_geojson(cls, geometry: Optional[dict]) -> Optional["GeoPoint"]:
        if not geometry or len(geometry.get("coordinates") or []) != 2:
            return None
        longitude, latitude = geometry["coordinates"]
        return cls(latitude=latitude, longitude=longitude)


def validate_coordinates(latitude: float, longitude: float) -> bool:
    try:
        return -90 <= float(latitude) <= 90 and -180 <= float(longitude) <= 180
    except (TypeError, ValueError):
        return False


@dataclass
class Address:
    street: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None


@dataclass
class MenuItem:
    """Menu item value object, embedded in the restaurant document"""
    id: Optional[str] = None
    name: str = ""
    description: str = ""
    price: float = 0.0
    category: str = MenuCategory.OTHER.value
    image_url: str = ""
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_available: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Restaurant:
    """Restaurant aggregate root"""
    id: Optional[str] = None
    name: str = ""
    cuisine: str = Cuisine.OTHER.value
    location: str = ""
    coordinates: Optional[GeoPoint] = None
    address: Optional[Address] = None
    price_range: int = 1
    description: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    capacity: int = 50
    opening_hours: Dict[str, DayHours] = field(default_factory=dict)
    menu_items: List[MenuItem] = field(default_factory=list)
    is_active: bool = True
    owner_id: Optional[str] = None
    average_rating: float = 0.0
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
    # Filled by geospatial queries only
    distance: Optional[float] = None

    def hours_for(self, weekday: str) -> DayHours:
        """Opening hours for a weekday; a missing entry means closed"""
        return self.opening_hours.get(weekday) or DayHours()

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.owner_id == user_id

    def deactivate(self):
        """Soft delete: hide from listings but keep bookings and reviews"""
        self.is_active = False
        self.updated_at = datetime.utcnow()

    def find_menu_item(self, item_id: str) -> Optional[MenuItem]:
        for item in self.menu_items:
            if item.id == item_id:
                return item
        return None

"""
API request/response schemas
"""
import math
from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator, model_validator

from dinebook_service.domain.entities.booking import Booking, MonthlyBookingStats
from dinebook_service.domain.entities.restaurant import (
    WEEKDAYS,
    Cuisine,
    MenuCategory,
    MenuItem,
    Restaurant,
    is_valid_time,
    time_to_minutes,
)
from dinebook_service.domain.entities.review import Review
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.services.booking_service import Availability, BookingDetails


# Auth

class UserCreate(BaseModel):
    """User registration schema"""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Literal["customer", "owner"] = "customer"


class UserResponse(BaseModel):
    """User response schema"""
    id: str
    name: str
    email: str
    role: str
    is_active: bool = True
    created_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at
        )


class Token(BaseModel):
    """Token response schema"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token data schema"""
    user_id: Optional[str] = None
    role: Optional[str] = None


# Restaurants

class Coordinates(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class AddressSchema(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None


class DayHoursSchema(BaseModel):
    """Opening hours for one weekday; null values mean closed"""
    open: Optional[str] = None
    close: Optional[str] = None

    @model_validator(mode="after")
    def check_times(self):
        for value in (self.open, self.close):
            if value is not None and not is_valid_time(value):
                raise ValueError(f"Invalid time '{value}', expected HH:MM")
        if self.open and self.close and time_to_minutes(self.close) < time_to_minutes(self.open):
            raise ValueError("Closing time must be after opening time")
        return self


def _check_weekdays(value: Optional[Dict[str, DayHoursSchema]]):
    if value:
        unknown = [day for day in value if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
    return value


OpeningHours = Annotated[Dict[str, DayHoursSchema], AfterValidator(_check_weekdays)]


class RestaurantBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    cuisine: Cuisine
    location: str = Field(min_length=1)
    coordinates: Optional[Coordinates] = None
    address: Optional[AddressSchema] = None
    price_range: int = Field(ge=1, le=4)
    description: Optional[str] = Field(default=None, max_length=500)
    phone_number: Optional[str] = None
    email: Optional[EmailStr] = None
    capacity: int = Field(default=50, ge=1)
    opening_hours: OpeningHours = Field(default_factory=dict)


class RestaurantCreate(RestaurantBase):
    """Restaurant creation schema"""
    pass


class RestaurantUpdate(BaseModel):
    """Partial restaurant update schema"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    cuisine: Optional[Cuisine] = None
    location: Optional[str] = Field(default=None, min_length=1)
    coordinates: Optional[Coordinates] = None
    address: Optional[AddressSchema] = None
    price_range: Optional[int] = Field(default=None, ge=1, le=4)
    description: Optional[str] = Field(default=None, max_length=500)
    phone_number: Optional[str] = None
    email: Optional[EmailStr] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    opening_hours: Optional[OpeningHours] = None

    @field_validator("name", "cuisine", "location", "price_range", "capacity", "opening_hours")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to keep it; only coordinates, address and contact fields can be cleared
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class MenuItemBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=300)
    price: float = Field(ge=0)
    category: MenuCategory = MenuCategory.OTHER
    image_url: str = ""
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_available: bool = True


class MenuItemCreate(MenuItemBase):
    """Menu item creation schema"""
    pass


class MenuItemUpdate(BaseModel):
    """Partial menu item update schema"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=300)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[MenuCategory] = None
    image_url: Optional[str] = None
    is_vegetarian: Optional[bool] = None
    is_vegan: Optional[bool] = None
    is_gluten_free: Optional[bool] = None
    is_available: Optional[bool] = None


class MenuItemResponse(MenuItemBase):
    id: str
    category: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, item: MenuItem) -> "MenuItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            description=item.description,
            price=item.price,
            category=item.category,
            image_url=item.image_url,
            is_vegetarian=item.is_vegetarian,
            is_vegan=item.is_vegan,
            is_gluten_free=item.is_gluten_free,
            is_available=item.is_available,
            created_at=item.created_at,
            updated_at=item.updated_at
        )


class RestaurantResponse(BaseModel):
    """Restaurant response schema"""
    id: str
    name: str
    cuisine: str
    location: str
    coordinates: Optional[Coordinates] = None
    address: Optional[AddressSchema] = None
    price_range: int
    description: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    capacity: int
    opening_hours: OpeningHours = Field(default_factory=dict)
    menu_items: List[MenuItemResponse] = Field(default_factory=list)
    is_active: bool
    owner_id: Optional[str] = None
    average_rating: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    distance: Optional[float] = None
    distance_km: Optional[float] = None

    @classmethod
    def from_entity(cls, restaurant: Restaurant) -> "RestaurantResponse":
        coordinates = restaurant.coordinates
        address = restaurant.address
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            cuisine=restaurant.cuisine,
            location=restaurant.location,
            coordinates=Coordinates(
                latitude=coordinates.latitude, longitude=coordinates.longitude
            ) if coordinates else None,
            address=AddressSchema(
                street=address.street,
                city=address.city,
                province=address.province,
                postal_code=address.postal_code
            ) if address else None,
            price_range=restaurant.price_range,
            description=restaurant.description,
            phone_number=restaurant.phone_number,
            email=restaurant.email,
            capacity=restaurant.capacity,
            opening_hours={
                day: DayHoursSchema(open=hours.open, close=hours.close)
                for day, hours in restaurant.opening_hours.items()
            },
            menu_items=[MenuItemResponse.from_entity(item) for item in restaurant.menu_items],
            is_active=restaurant.is_active,
            owner_id=restaurant.owner_id,
            average_rating=restaurant.average_rating,
            created_at=restaurant.created_at,
            updated_at=restaurant.updated_at,
            distance=restaurant.distance,
            distance_km=round(restaurant.distance / 1000, 2) if restaurant.distance is not None else None
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


class RestaurantListResponse(BaseModel):
    """Paginated restaurant list"""
    restaurants: List[RestaurantResponse]
    pagination: Pagination
    degraded: bool = False


class NearbyFilters(BaseModel):
    cuisine: Optional[str] = None
    price_range: Optional[int] = None


class NearbyRestaurantsResponse(RestaurantListResponse):
    """Nearby search results with the search it answered"""
    user_location: Coordinates
    search_radius: float
    filters: NearbyFilters
    message: str


class RestaurantStatsResponse(BaseModel):
    restaurant_id: str
    restaurant_name: str
    total_bookings: int
    today_bookings: int
    upcoming_bookings: int
    total_reviews: int
    average_rating: float


# Bookings

class BookingCreate(BaseModel):
    """Booking creation schema; date/time formats are checked by the booking service"""
    restaurant_id: str
    date: str
    time: str
    guests: int
    special_requests: Optional[str] = None


class BookingResponse(BaseModel):
    id: str
    customer_id: str
    restaurant_id: str
    restaurant_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    date: str
    time: str
    guests: int
    special_requests: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(
        cls,
        booking: Booking,
        restaurant_name: Optional[str] = None,
        customer_name: Optional[str] = None,
        customer_email: Optional[str] = None
    ) -> "BookingResponse":
        return cls(
            id=booking.id,
            customer_id=booking.customer_id,
            restaurant_id=booking.restaurant_id,
            restaurant_name=restaurant_name,
            customer_name=customer_name,
            customer_email=customer_email,
            date=booking.date,
            time=booking.time,
            guests=booking.guests,
            special_requests=booking.special_requests,
            status=booking.status,
            created_at=booking.created_at,
            updated_at=booking.updated_at
        )

    @classmethod
    def from_details(cls, details: BookingDetails) -> "BookingResponse":
        return cls.from_entity(
            details.booking,
            restaurant_name=details.restaurant_name,
            customer_name=details.customer_name,
            customer_email=details.customer_email
        )


class BookingMessageResponse(BaseModel):
    message: str
    booking: BookingResponse


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    total: int


class SlotResponse(BaseModel):
    time: str
    available: bool
    available_capacity: int
    total_capacity: int


class AvailabilityResponse(BaseModel):
    restaurant_id: str
    restaurant_name: Optional[str] = None
    date: str
    day_of_week: str
    opening_hours: Optional[DayHoursSchema] = None
    available_slots: List[SlotResponse]
    total_slots: int
    message: Optional[str] = None

    @classmethod
    def from_availability(cls, availability: Availability) -> "AvailabilityResponse":
        return cls(
            restaurant_id=availability.restaurant_id,
            restaurant_name=availability.restaurant_name,
            date=availability.date,
            day_of_week=availability.day_of_week,
            opening_hours=None if availability.is_closed else DayHoursSchema(
                open=availability.open, close=availability.close
            ),
            available_slots=[
                SlotResponse(
                    time=slot.time,
                    available=slot.available,
                    available_capacity=slot.available_capacity,
                    total_capacity=slot.total_capacity
                )
                for slot in availability.slots
            ],
            total_slots=len(availability.slots),
            message=availability.message
        )


class MonthlyStatsResponse(BaseModel):
    year: int
    month: int
    bookings: int
    guests: int

    @classmethod
    def from_entity(cls, stats: MonthlyBookingStats) -> "MonthlyStatsResponse":
        return cls(year=stats.year, month=stats.month, bookings=stats.bookings, guests=stats.guests)


class BookingStatsResponse(BaseModel):
    total_bookings: int
    upcoming_bookings: int
    cancelled_bookings: int
    total_guests: int
    monthly_stats: List[MonthlyStatsResponse]


# Reviews

class ReviewCreate(BaseModel):
    restaurant_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=1000)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class ReplyRequest(BaseModel):
    reply: str = Field(min_length=1, max_length=500)


class ReviewResponse(BaseModel):
    id: str
    customer_id: str
    customer_name: Optional[str] = None
    restaurant_id: str
    restaurant_name: Optional[str] = None
    rating: int
    comment: str
    owner_reply: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(
        cls,
        review: Review,
        customer_name: Optional[str] = None,
        restaurant_name: Optional[str] = None
    ) -> "ReviewResponse":
        return cls(
            id=review.id,
            customer_id=review.customer_id,
            customer_name=customer_name,
            restaurant_id=review.restaurant_id,
            restaurant_name=restaurant_name,
            rating=review.rating,
            comment=review.comment,
            owner_reply=review.owner_reply,
            created_at=review.created_at,
            updated_at=review.updated_at
        )


class RestaurantReviewsResponse(BaseModel):
    reviews: List[ReviewResponse]
    average_rating: float
    total_reviews: int


# Favorites

class FavoriteResponse(BaseModel):
    id: str
    restaurant_id: str
    created_at: Optional[datetime] = None
    restaurant: Optional[RestaurantResponse] = None


class FavoriteListResponse(BaseModel):
    favorites: List[FavoriteResponse]


class FavoriteStatusResponse(BaseModel):
    is_favorited: bool


class MessageResponse(BaseModel):
    message: str

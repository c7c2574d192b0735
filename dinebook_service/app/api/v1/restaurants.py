"""
Restaurant endpoints: public search and owner management
"""
import logging
from datetime import date as date_type
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from dinebook_service.app.api.v1.auth import require_owner
from dinebook_service.app.api.v1.dependencies import (
    get_booking_repository,
    get_restaurant_repository,
    get_review_repository,
    get_user_repository,
)
from dinebook_service.app.api.v1.errors import http_error
from dinebook_service.app.api.v1.schemas import (
    BookingListResponse,
    BookingResponse,
    Coordinates,
    MessageResponse,
    NearbyFilters,
    NearbyRestaurantsResponse,
    Pagination,
    RestaurantCreate,
    RestaurantListResponse,
    RestaurantResponse,
    RestaurantStatsResponse,
    RestaurantUpdate,
)
from dinebook_service.config import get_settings
from dinebook_service.domain.entities.booking import ACTIVE_STATUSES
from dinebook_service.domain.entities.restaurant import Address, DayHours, GeoPoint, Restaurant
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.booking_port import IBookingRepository
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository, RestaurantQuery
from dinebook_service.domain.ports.review_port import IReviewRepository
from dinebook_service.domain.ports.user_port import IUserRepository
from dinebook_service.exceptions import (
    AuthorizationError,
    GeoQueryError,
    NotFoundError,
    ValidationError,
)
from dinebook_service.infrastructure.cache.memory_cache import (
    RESTAURANT_LIST_PREFIX,
    get_restaurant_cache,
    invalidate_restaurant,
    restaurant_key,
    restaurant_list_key,
)
from dinebook_service.infrastructure.database.object_id import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


async def search_restaurants(
    restaurant_repo: IRestaurantRepository,
    query: RestaurantQuery,
    page: int,
    limit: int,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    radius_km: Optional[float] = None
) -> RestaurantListResponse:
    """Geo search when a center point is given, plain filtered listing otherwise.

    A failing geospatial query degrades to the plain listing with a
    placeholder distance, flagged in the response.
    """
    skip = (page - 1) * limit
    degraded = False

    if latitude is not None and longitude is not None:
        try:
            restaurants, total = await restaurant_repo.find_nearby(
                latitude, longitude, radius_km, query, skip=skip, limit=limit
            )
        except GeoQueryError as e:
            logger.warning(f"⚠️  Nearby search degraded to plain listing: {e}")
            restaurants, total = await restaurant_repo.search(query, skip=skip, limit=limit)
            for restaurant in restaurants:
                restaurant.distance = settings.fallback_distance_meters
            degraded = True
    else:
        restaurants, total = await restaurant_repo.search(query, skip=skip, limit=limit)

    return RestaurantListResponse(
        restaurants=[RestaurantResponse.from_entity(r) for r in restaurants],
        pagination=Pagination.build(page, limit, total),
        degraded=degraded
    )


def _check_coordinates(latitude: Optional[float], longitude: Optional[float], radius: float):
    if (latitude is None) != (longitude is None):
        raise ValidationError("Both latitude and longitude are required")
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValidationError("Longitude must be between -180 and 180")
    if radius <= 0:
        raise ValidationError("Radius must be greater than 0")


async def _get_owned_restaurant(
    restaurant_repo: IRestaurantRepository,
    restaurant_id: str,
    owner: User
) -> Restaurant:
    validate_object_id(restaurant_id, "restaurant")
    restaurant = await restaurant_repo.get_by_id(restaurant_id)
    if not restaurant:
        raise NotFoundError("Restaurant not found")
    if not restaurant.is_owned_by(owner.id):
        raise AuthorizationError("You don't have permission to manage this restaurant")
    return restaurant


def _opening_hours(data) -> dict:
    return {day: DayHours(open=hours.open, close=hours.close) for day, hours in data.items()}


@router.get("/nearby", response_model=NearbyRestaurantsResponse)
async def get_nearby_restaurants(
    latitude: Optional[float] = Query(default=None),
    longitude: Optional[float] = Query(default=None),
    radius: float = Query(default=settings.nearby_default_radius_km, description="Radius in km"),
    cuisine: Optional[str] = Query(default=None),
    price_range: Optional[int] = Query(default=None, ge=1, le=4),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Active restaurants within a radius of a point, nearest first"""
    try:
        if latitude is None or longitude is None:
            raise ValidationError("Latitude and longitude are required")
        _check_coordinates(latitude, longitude, radius)
        result = await search_restaurants(
            restaurant_repo,
            RestaurantQuery(cuisine=cuisine, price_range=price_range),
            page,
            limit,
            latitude=latitude,
            longitude=longitude,
            radius_km=radius
        )
    except Exception as e:
        raise http_error(e, "Nearby search")

    return NearbyRestaurantsResponse(
        restaurants=result.restaurants,
        pagination=result.pagination,
        degraded=result.degraded,
        user_location=Coordinates(latitude=latitude, longitude=longitude),
        search_radius=radius,
        filters=NearbyFilters(cuisine=cuisine, price_range=price_range),
        message=f"Found {len(result.restaurants)} restaurants within {radius:g}km"
    )


@router.get("", response_model=RestaurantListResponse)
async def list_restaurants(
    location: Optional[str] = Query(default=None),
    cuisine: Optional[str] = Query(default=None),
    price_range: Optional[int] = Query(default=None, ge=1, le=4),
    latitude: Optional[float] = Query(default=None),
    longitude: Optional[float] = Query(default=None),
    radius: float = Query(default=settings.list_default_radius_km, description="Radius in km"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Browse active restaurants by location text and filters"""
    try:
        _check_coordinates(latitude, longitude, radius)
        query = RestaurantQuery(cuisine=cuisine, price_range=price_range, location=location)

        # Only the unfiltered browse is cached
        cacheable = not any([location, cuisine, price_range, latitude is not None])
        cache = get_restaurant_cache()
        cache_key = restaurant_list_key(page, limit)
        if cacheable:
            cached = cache.get(cache_key)
            if cached is not None:
                return cached

        response = await search_restaurants(
            restaurant_repo, query, page, limit,
            latitude=latitude, longitude=longitude, radius_km=radius
        )
        if cacheable:
            cache.set(cache_key, response)
        return response
    except Exception as e:
        raise http_error(e, "Restaurant listing")


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    data: RestaurantCreate,
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Create a restaurant owned by the caller"""
    try:
        restaurant = Restaurant(
            name=data.name.strip(),
            cuisine=data.cuisine.value,
            location=data.location.strip(),
            coordinates=GeoPoint(
                latitude=data.coordinates.latitude, longitude=data.coordinates.longitude
            ) if data.coordinates else None,
            address=Address(**data.address.model_dump()) if data.address else None,
            price_range=data.price_range,
            description=data.description,
            phone_number=data.phone_number,
            email=data.email,
            capacity=data.capacity,
            opening_hours=_opening_hours(data.opening_hours),
            owner_id=current_user.id
        )
        restaurant = await restaurant_repo.create(restaurant)
    except Exception as e:
        raise http_error(e, "Create restaurant")

    get_restaurant_cache().delete_prefix(RESTAURANT_LIST_PREFIX)
    logger.info(f"🍽️  Restaurant {restaurant.id} created by owner {current_user.id}")
    return RestaurantResponse.from_entity(restaurant)


@router.get("/my", response_model=List[RestaurantResponse])
async def get_my_restaurants(
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """The caller's active restaurants, newest first"""
    try:
        restaurants = await restaurant_repo.list_by_owner(current_user.id)
    except Exception as e:
        raise http_error(e, "Fetch owner restaurants")
    return [RestaurantResponse.from_entity(r) for r in restaurants]


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(
    restaurant_id: str,
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Get an active restaurant"""
    try:
        validate_object_id(restaurant_id, "restaurant")
        cache = get_restaurant_cache()
        cached = cache.get(restaurant_key(restaurant_id))
        if cached is not None:
            return cached

        restaurant = await restaurant_repo.get_by_id(restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant not found")
        if not restaurant.is_active:
            raise NotFoundError("Restaurant is not available")

        response = RestaurantResponse.from_entity(restaurant)
        cache.set(restaurant_key(restaurant_id), response)
        return response
    except Exception as e:
        raise http_error(e, "Fetch restaurant")


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: str,
    data: RestaurantUpdate,
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Partially update a restaurant profile"""
    try:
        restaurant = await _get_owned_restaurant(restaurant_repo, restaurant_id, current_user)

        changes = data.model_dump(exclude_unset=True)
        for field in ("name", "location", "price_range", "description", "phone_number", "email", "capacity"):
            if field in changes:
                setattr(restaurant, field, changes[field])
        if data.cuisine is not None:
            restaurant.cuisine = data.cuisine.value
        if "coordinates" in changes:
            restaurant.coordinates = GeoPoint(
                latitude=data.coordinates.latitude, longitude=data.coordinates.longitude
            ) if data.coordinates else None
        if "address" in changes:
            restaurant.address = Address(**data.address.model_dump()) if data.address else None
        if data.opening_hours is not None:
            restaurant.opening_hours = _opening_hours(data.opening_hours)

        restaurant = await restaurant_repo.update(restaurant)
        invalidate_restaurant(restaurant_id)
        response = RestaurantResponse.from_entity(restaurant)
    except Exception as e:
        raise http_error(e, "Update restaurant")

    logger.info(f"Restaurant {restaurant_id} updated ({', '.join(sorted(changes))})")
    return response


@router.delete("/{restaurant_id}", response_model=MessageResponse)
async def delete_restaurant(
    restaurant_id: str,
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Soft delete: the restaurant disappears from listings, its bookings and reviews stay"""
    try:
        restaurant = await _get_owned_restaurant(restaurant_repo, restaurant_id, current_user)
        restaurant.deactivate()
        await restaurant_repo.update(restaurant)
    except Exception as e:
        raise http_error(e, "Delete restaurant")

    invalidate_restaurant(restaurant_id)
    logger.info(f"Restaurant {restaurant_id} deactivated by owner {current_user.id}")
    return MessageResponse(message="Restaurant deleted successfully")


@router.get("/{restaurant_id}/bookings", response_model=BookingListResponse)
async def get_restaurant_bookings(
    restaurant_id: str,
    limit: int = Query(default=10, ge=1, le=100),
    booking_status: Optional[str] = Query(default=None, alias="status"),
    date: Optional[str] = Query(default=None),
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository),
    booking_repo: IBookingRepository = Depends(get_booking_repository),
    user_repo: IUserRepository = Depends(get_user_repository)
):
    """Bookings of an owned restaurant with customer contact details"""
    try:
        restaurant = await _get_owned_restaurant(restaurant_repo, restaurant_id, current_user)
        bookings = await booking_repo.list_for_restaurant(
            restaurant.id,
            status=None if booking_status in (None, "all") else booking_status,
            date=date,
            limit=limit
        )
        customers = await user_repo.get_many([b.customer_id for b in bookings])
    except Exception as e:
        raise http_error(e, "Fetch restaurant bookings")

    responses = []
    for booking in bookings:
        customer = customers.get(booking.customer_id)
        responses.append(BookingResponse.from_entity(
            booking,
            restaurant_name=restaurant.name,
            customer_name=customer.name if customer else None,
            customer_email=customer.email if customer else None
        ))
    return BookingListResponse(bookings=responses, total=len(responses))


@router.get("/{restaurant_id}/stats", response_model=RestaurantStatsResponse)
async def get_restaurant_stats(
    restaurant_id: str,
    current_user: User = Depends(require_owner),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository),
    booking_repo: IBookingRepository = Depends(get_booking_repository),
    review_repo: IReviewRepository = Depends(get_review_repository)
):
    """Dashboard numbers for an owned restaurant"""
    try:
        restaurant = await _get_owned_restaurant(restaurant_repo, restaurant_id, current_user)
        today = date_type.today().isoformat()
        return RestaurantStatsResponse(
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
            total_bookings=await booking_repo.count(restaurant.id),
            today_bookings=await booking_repo.count(restaurant.id, statuses=ACTIVE_STATUSES, date=today),
            upcoming_bookings=await booking_repo.count(
                restaurant.id, statuses=ACTIVE_STATUSES, date_from=today
            ),
            total_reviews=await review_repo.count_for_restaurant(restaurant.id),
            average_rating=await review_repo.average_rating(restaurant.id)
        )
    except Exception as e:
        raise http_error(e, "Fetch restaurant stats")

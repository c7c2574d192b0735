"""
Booking endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from dinebook_service.app.api.v1.auth import get_current_user
from dinebook_service.app.api.v1.dependencies import get_booking_service
from dinebook_service.app.api.v1.errors import http_error
from dinebook_service.app.api.v1.schemas import (
    AvailabilityResponse,
    BookingCreate,
    BookingListResponse,
    BookingMessageResponse,
    BookingResponse,
    BookingStatsResponse,
    MonthlyStatsResponse,
)
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.services.booking_service import BookingService
from dinebook_service.infrastructure.database.object_id import validate_object_id

router = APIRouter()


@router.get("/availability/{restaurant_id}", response_model=AvailabilityResponse)
async def get_availability(
    restaurant_id: str,
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Time slots and remaining seats for a restaurant on a date"""
    try:
        validate_object_id(restaurant_id, "restaurant")
        availability = await booking_service.get_availability(restaurant_id, date)
    except Exception as e:
        raise http_error(e, "Check availability")
    return AvailabilityResponse.from_availability(availability)


@router.post("", response_model=BookingMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Book a table"""
    try:
        validate_object_id(data.restaurant_id, "restaurant")
        details = await booking_service.create_booking(
            customer=current_user,
            restaurant_id=data.restaurant_id,
            date=data.date,
            time=data.time,
            guests=data.guests,
            special_requests=data.special_requests
        )
    except Exception as e:
        raise http_error(e, "Create booking")
    return BookingMessageResponse(
        message="Booking created successfully",
        booking=BookingResponse.from_details(details)
    )


@router.get("", response_model=BookingListResponse)
async def list_my_bookings(
    booking_status: Optional[str] = Query(default=None, alias="status"),
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service)
):
    """The caller's bookings, newest first"""
    try:
        bookings = await booking_service.list_user_bookings(
            current_user, status=booking_status, date_from=date_from, date_to=date_to
        )
    except Exception as e:
        raise http_error(e, "Fetch bookings")
    return BookingListResponse(
        bookings=[BookingResponse.from_details(details) for details in bookings],
        total=len(bookings)
    )


@router.get("/stats/{restaurant_id}", response_model=BookingStatsResponse)
async def get_booking_stats(
    restaurant_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Booking statistics for one of the caller's restaurants"""
    try:
        validate_object_id(restaurant_id, "restaurant")
        stats = await booking_service.get_booking_stats(current_user, restaurant_id)
    except Exception as e:
        raise http_error(e, "Fetch booking stats")
    return BookingStatsResponse(
        total_bookings=stats.total_bookings,
        upcoming_bookings=stats.upcoming_bookings,
        cancelled_bookings=stats.cancelled_bookings,
        total_guests=stats.total_guests,
        monthly_stats=[MonthlyStatsResponse.from_entity(month) for month in stats.monthly_stats]
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service)
):
    """One of the caller's bookings"""
    try:
        validate_object_id(booking_id, "booking")
        details = await booking_service.get_booking(current_user, booking_id)
    except Exception as e:
        raise http_error(e, "Fetch booking")
    return BookingResponse.from_details(details)


@router.put("/{booking_id}/cancel", response_model=BookingMessageResponse)
async def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Cancel one of the caller's upcoming bookings"""
    try:
        validate_object_id(booking_id, "booking")
        details = await booking_service.cancel_booking(current_user, booking_id)
    except Exception as e:
        raise http_error(e, "Cancel booking")
    return BookingMessageResponse(
        message="Booking cancelled successfully",
        booking=BookingResponse.from_details(details)
    )

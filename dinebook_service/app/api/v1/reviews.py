"""
Review endpoints
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status

from dinebook_service.app.api.v1.auth import get_current_user, require_customer, require_owner
from dinebook_service.app.api.v1.dependencies import (
    get_restaurant_repository,
    get_review_repository,
    get_user_repository,
)
from dinebook_service.app.api.v1.errors import http_error
from dinebook_service.app.api.v1.schemas import (
    MessageResponse,
    ReplyRequest,
    RestaurantReviewsResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from dinebook_service.domain.entities.review import Review
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.restaurant_port import IRestaurantRepository
from dinebook_service.domain.ports.review_port import IReviewRepository
from dinebook_service.domain.ports.user_port import IUserRepository
from dinebook_service.exceptions import AuthorizationError, NotFoundError
from dinebook_service.infrastructure.cache.memory_cache import invalidate_restaurant
from dinebook_service.infrastructure.database.object_id import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter()


async def refresh_average_rating(
    review_repo: IReviewRepository,
    restaurant_repo: IRestaurantRepository,
    restaurant_id: str
) -> float:
    """Recompute and store the denormalized average rating of a restaurant"""
    average = await review_repo.average_rating(restaurant_id)
    await restaurant_repo.set_average_rating(restaurant_id, average)
    invalidate_restaurant(restaurant_id)
    return average


async def _get_review(review_repo: IReviewRepository, review_id: str) -> Review:
    validate_object_id(review_id, "review")
    review = await review_repo.get_by_id(review_id)
    if not review:
        raise NotFoundError("Review not found")
    return review


async def _get_own_review(review_repo: IReviewRepository, review_id: str, user: User) -> Review:
    review = await _get_review(review_repo, review_id)
    if review.customer_id != user.id:
        raise AuthorizationError("You can only modify your own reviews")
    return review


async def _get_review_for_owner(
    review_repo: IReviewRepository,
    restaurant_repo: IRestaurantRepository,
    review_id: str,
    owner: User
) -> Review:
    review = await _get_review(review_repo, review_id)
    restaurant = await restaurant_repo.get_by_id(review.restaurant_id)
    if not restaurant or not restaurant.is_owned_by(owner.id):
        raise AuthorizationError("You can only reply to reviews of your own restaurants")
    return review


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(require_customer),
    review_repo: IReviewRepository = Depends(get_review_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Review a restaurant, once per customer"""
    try:
        validate_object_id(data.restaurant_id, "restaurant")
        restaurant = await restaurant_repo.get_by_id(data.restaurant_id)
        if not restaurant or not restaurant.is_active:
            raise NotFoundError("Restaurant not found")

        review = await review_repo.create(Review(
            customer_id=current_user.id,
            restaurant_id=data.restaurant_id,
            rating=data.rating,
            comment=data.comment.strip()
        ))
        await refresh_average_rating(review_repo, restaurant_repo, data.restaurant_id)
    except Exception as e:
        raise http_error(e, "Create review")

    logger.info(f"⭐ Review {review.id} ({review.rating}) for restaurant {review.restaurant_id}")
    return ReviewResponse.from_entity(review, customer_name=current_user.name, restaurant_name=restaurant.name)


@router.get("/restaurant/{restaurant_id}", response_model=RestaurantReviewsResponse)
async def get_restaurant_reviews(
    restaurant_id: str,
    review_repo: IReviewRepository = Depends(get_review_repository),
    user_repo: IUserRepository = Depends(get_user_repository)
):
    """Public reviews of a restaurant, newest first"""
    try:
        validate_object_id(restaurant_id, "restaurant")
        reviews = await review_repo.list_for_restaurant(restaurant_id)
        customers = await user_repo.get_many([r.customer_id for r in reviews])
        average = await review_repo.average_rating(restaurant_id)
    except Exception as e:
        raise http_error(e, "Fetch reviews")

    return RestaurantReviewsResponse(
        reviews=[
            ReviewResponse.from_entity(
                review,
                customer_name=customers[review.customer_id].name if review.customer_id in customers else None
            )
            for review in reviews
        ],
        average_rating=average,
        total_reviews=len(reviews)
    )


@router.get("/my-reviews", response_model=List[ReviewResponse])
async def get_my_reviews(
    current_user: User = Depends(get_current_user),
    review_repo: IReviewRepository = Depends(get_review_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """The caller's reviews with restaurant names"""
    try:
        reviews = await review_repo.list_for_customer(current_user.id)
        restaurants = await restaurant_repo.get_many([r.restaurant_id for r in reviews])
    except Exception as e:
        raise http_error(e, "Fetch my reviews")

    return [
        ReviewResponse.from_entity(
            review,
            customer_name=current_user.name,
            restaurant_name=restaurants[review.restaurant_id].name if review.restaurant_id in restaurants else None
        )
        for review in reviews
    ]


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(
    review_id: str,
    review_repo: IReviewRepository = Depends(get_review_repository)
):
    """Any review by id"""
    try:
        review = await _get_review(review_repo, review_id)
    except Exception as e:
        raise http_error(e, "Fetch review")
    return ReviewResponse.from_entity(review)


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    review_repo: IReviewRepository = Depends(get_review_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Change rating or comment of the caller's review"""
    try:
        review = await _get_own_review(review_repo, review_id, current_user)
        review.update(
            rating=data.rating,
            comment=data.comment.strip() if data.comment is not None else None
        )
        review = await review_repo.update(review)
        await refresh_average_rating(review_repo, restaurant_repo, review.restaurant_id)
    except Exception as e:
        raise http_error(e, "Update review")
    return ReviewResponse.from_entity(review, customer_name=current_user.name)


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_review(
    review_id: str,
    current_user: User = Depends(get_current_user),
    review_repo: IReviewRepository = Depends(get_review_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Delete the caller's review"""
    try:
        review = await _get_own_review(review_repo, review_id, current_user)
        await review_repo.delete(review.id)
        await refresh_average_rating(review_repo, restaurant_repo, review.restaurant_id)
    except Exception as e:
        raise http_error(e, "Delete review")
    return MessageResponse(message="Review deleted successfully")


@router.post("/{review_id}/reply", response_model=ReviewResponse)
@router.put("/{review_id}/reply", response_model=ReviewResponse)
async def reply_to_review(
    review_id: str,
    data: ReplyRequest,
    current_user: User = Depends(require_owner),
    review_repo: IReviewRepository = Depends(get_review_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Set the owner's reply on a review of their restaurant"""
    try:
        review = await _get_review_for_owner(review_repo, restaurant_repo, review_id, current_user)
        review.set_reply(data.reply.strip())
        review = await review_repo.update(review)
    except Exception as e:
        raise http_error(e, "Reply to review")
    return ReviewResponse.from_entity(review)


@router.delete("/{review_id}/reply", response_model=ReviewResponse)
async def delete_reply(
    review_id: str,
    current_user: User = Depends(require_owner),
    review_repo: IReviewRepository = Depends(get_review_repository),
    restaurant_repo: IRestaurantRepository = Depends(get_restaurant_repository)
):
    """Remove the owner's reply"""
    try:
        review = await _get_review_for_owner(review_repo, restaurant_repo, review_id, current_user)
        if not review.owner_reply:
            raise NotFoundError("Reply not found")
        review.set_reply(None)
        review = await review_repo.update(review)
    except Exception as e:
        raise http_error(e, "Delete reply")
    return ReviewResponse.from_entity(review)

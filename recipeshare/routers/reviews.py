from fastapi import Depends, Query
from sqlalchemy.orm import Session

from recipeshare.database import Review, get_db
from recipeshare.routers.base import api_router
from recipeshare.schemas.recipe import ApiResponse
from recipeshare.schemas.review import ReviewCreate, ReviewResponse
from recipeshare.services.review_service import ReviewService
from recipeshare.ownership import owned
from recipeshare.session_guard import Identity, require_user


@api_router.get("/reviews/recipe/{recipe_id}", response_model=ApiResponse)
def recipe_reviews(
    recipe_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    sort_by: str = Query("created_at", pattern="^(created_at|helpful|rating)$"),
    db: Session = Depends(get_db),
):
    reviews, distribution, pagination = ReviewService(db).list_for_recipe(
        recipe_id, page=page, limit=limit, sort_by=sort_by
    )
    return ApiResponse(
        success=True,
        reviews=[ReviewResponse.from_db(r) for r in reviews],
        rating_distribution=distribution,
        pagination=pagination,
    )


@api_router.get("/reviews/user/{user_id}", response_model=ApiResponse)
def user_reviews(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    reviews, pagination = ReviewService(db).list_for_user(user_id, page=page, limit=limit)
    return ApiResponse(
        success=True,
        reviews=[ReviewResponse.from_db(r, include_recipe=True) for r in reviews],
        pagination=pagination,
    )


@api_router.get("/reviews/check/{recipe_id}", response_model=ApiResponse)
def check_user_review(recipe_id: str, db: Session = Depends(get_db),
                      identity: Identity = Depends(require_user)):
    review = ReviewService(db).find_user_review(recipe_id, identity.user_id)
    return ApiResponse(
        success=True,
        has_reviewed=review is not None,
        review=ReviewResponse.from_db(review) if review else None,
    )


@api_router.get("/reviews/{id}", response_model=ApiResponse)
def get_review(id: str, db: Session = Depends(get_db)):
    review = ReviewService(db).get_review(id)
    return ApiResponse(success=True, review=ReviewResponse.from_db(review, include_recipe=True))


@api_router.post("/reviews/recipe/{recipe_id}", status_code=201, response_model=ApiResponse)
def create_review(recipe_id: str, data: ReviewCreate, db: Session = Depends(get_db),
                  identity: Identity = Depends(require_user)):
    service = ReviewService(db)
    review = service.create_review(recipe_id, identity, data)
    return ApiResponse(
        success=True,
        message="Review created successfully",
        review=ReviewResponse.from_db(review),
        recipe_rating=service.recipe_rating(review.recipe_id),
    )


@api_router.put("/reviews/{id}", response_model=ApiResponse)
def update_review(data: ReviewCreate, db: Session = Depends(get_db),
                  review: Review = Depends(owned(Review))):
    service = ReviewService(db)
    review = service.update_review(review, data)
    return ApiResponse(
        success=True,
        message="Review updated successfully",
        review=ReviewResponse.from_db(review),
        recipe_rating=service.recipe_rating(review.recipe_id),
    )


@api_router.delete("/reviews/{id}", response_model=ApiResponse)
def delete_review(db: Session = Depends(get_db), review: Review = Depends(owned(Review))):
    service = ReviewService(db)
    recipe_id = service.delete_review(review)
    return ApiResponse(
        success=True,
        message="Review deleted successfully",
        recipe_rating=service.recipe_rating(recipe_id),
    )


@api_router.post("/reviews/{id}/helpful", response_model=ApiResponse)
def mark_helpful(id: str, db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    helpful_votes = ReviewService(db).mark_helpful(id)
    return ApiResponse(success=True, message="Review marked as helpful", helpful_votes=helpful_votes)

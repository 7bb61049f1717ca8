from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipeshare.database import Recipe as DBRecipe, Review
from recipeshare.errors import Conflict, NotFound
from recipeshare.logger import get_logger
from recipeshare.ownership import ensure_not_author, get_or_404
from recipeshare.rating import rating_distribution, recompute_recipe_rating
from recipeshare.schemas.review import ReviewCreate
from recipeshare.services.recipe_service import paginate
from recipeshare.session_guard import Identity

logger = get_logger("reviews")

REVIEW_SORTS = {
    "helpful": Review.helpful_votes.desc(),
    "rating": Review.rating.desc(),
    "created_at": Review.created_at.desc(),
}


class ReviewService:
    """
    Service for review-related business logic.

    Every create, update and delete is followed by a full recompute of the
    reviewed recipe's rating summary (recipeshare.rating).
    """

    def __init__(self, db: Session):
        self.db = db

    def list_for_recipe(self, recipe_id: str, page: int = 1, limit: int = 10,
                        sort_by: str = "created_at") -> Tuple[List[Review], list, dict]:
        recipe = get_or_404(self.db, DBRecipe, recipe_id, "Recipe")
        query = (
            self.db.query(Review)
            .filter(Review.recipe_id == recipe.id)
            .order_by(REVIEW_SORTS.get(sort_by, REVIEW_SORTS["created_at"]), Review.id)
        )
        reviews, pagination = paginate(query, page, limit)
        return reviews, rating_distribution(self.db, recipe.id), pagination

    def list_for_user(self, user_id: str, page: int = 1, limit: int = 10) -> Tuple[List[Review], dict]:
        query = self.db.query(Review).filter(Review.user_id == user_id).order_by(Review.created_at.desc(), Review.id)
        return paginate(query, page, limit)

    def get_review(self, review_id: str) -> Review:
        return get_or_404(self.db, Review, review_id, "Review")

    def find_user_review(self, recipe_id: str, user_id: str) -> Optional[Review]:
        return self.db.query(Review).filter(Review.recipe_id == recipe_id, Review.user_id == user_id).first()

    def create_review(self, recipe_id: str, identity: Identity, data: ReviewCreate) -> Review:
        recipe = get_or_404(self.db, DBRecipe, recipe_id, "Recipe")
        ensure_not_author(identity, recipe)

        if self.find_user_review(recipe.id, identity.user_id):
            raise Conflict("You have already reviewed this recipe. You can edit your existing review.")

        review = Review(
            recipe_id=recipe.id,
            user_id=identity.user_id,
            rating=data.rating,
            title=data.title,
            comment=data.comment,
        )
        self.db.add(review)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # Either a concurrent create for the same (recipe, user) or the recipe was deleted meanwhile
            if self.find_user_review(recipe_id, identity.user_id):
                raise Conflict("You have already reviewed this recipe")
            logger.info(f"Review on recipe {recipe_id} rejected by the store: {e.orig}")
            raise NotFound("Recipe not found")
        self.db.refresh(review)
        logger.info(f"Review {review.id} created on recipe {recipe.id} by {identity.user_id}")

        recompute_recipe_rating(self.db, recipe.id)
        return review

    def update_review(self, review: Review, data: ReviewCreate) -> Review:
        review.rating = data.rating
        review.title = data.title
        review.comment = data.comment
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review.id} updated")

        recompute_recipe_rating(self.db, review.recipe_id)
        return review

    def delete_review(self, review: Review) -> str:
        """Delete a review and return the id of the recipe it belonged to."""
        recipe_id = review.recipe_id
        review_id = review.id
        self.db.delete(review)
        self.db.commit()
        logger.info(f"Review {review_id} deleted")

        recompute_recipe_rating(self.db, recipe_id)
        return recipe_id

    def mark_helpful(self, review_id: str) -> int:
        """Single-statement increment, safe under concurrent votes."""
        review = get_or_404(self.db, Review, review_id, "Review")
        self.db.query(Review).filter(Review.id == review.id).update(
            {Review.helpful_votes: Review.helpful_votes + 1},
            synchronize_session=False,
        )
        self.db.commit()
        self.db.refresh(review)
        return review.helpful_votes

    def recipe_rating(self, recipe_id: str) -> Optional[dict]:
        """Current stored rating summary of a recipe, or None if it no longer exists."""
        recipe = self.db.get(DBRecipe, recipe_id)
        if recipe is None:
            return None
        self.db.refresh(recipe)
        return {"average_rating": recipe.average_rating, "total_ratings": recipe.total_ratings}

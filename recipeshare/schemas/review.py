from typing import Optional

from pydantic import BaseModel, Field, field_validator

from recipeshare.schemas.recipe import RecipeSummary
from recipeshare.schemas.user import AuthorSummary
from recipeshare.utils_time import format_datetime as format_dt


class ReviewCreate(BaseModel):
    """Body of a review create or update."""
    rating: int = Field(..., ge=1, le=5, description="Whole stars, 1-5")
    title: Optional[str] = Field(None, max_length=100)
    comment: str = Field(..., min_length=10, max_length=2000, description="Comment (10-2000 chars)")

    @field_validator('title', 'comment', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class ReviewResponse(BaseModel):
    id: str
    recipe_id: str
    rating: int
    title: Optional[str] = None
    comment: str
    helpful_votes: int
    is_verified: bool
    user: Optional[AuthorSummary] = None
    recipe: Optional[RecipeSummary] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_db(cls, review, include_recipe: bool = False):
        return cls(
            id=review.id,
            recipe_id=review.recipe_id,
            rating=review.rating,
            title=review.title,
            comment=review.comment,
            helpful_votes=review.helpful_votes or 0,
            is_verified=bool(review.is_verified),
            user=AuthorSummary.from_db(review.user) if review.user else None,
            recipe=RecipeSummary.from_db(review.recipe) if include_recipe and review.recipe else None,
            created_at=format_dt(review.created_at),
            updated_at=format_dt(review.updated_at),
        )

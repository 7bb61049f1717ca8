"""
Rating aggregation.

A recipe's `average_rating` and `total_ratings` are always recomputed from the
full set of its reviews; nothing adjusts them incrementally.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recipeshare.database import Recipe, Review
from recipeshare.logger import get_logger, log_with_context

logger = get_logger("rating")


def round_rating(total: int, count: int) -> float:
    """Mean of `count` ratings summing to `total`, one decimal place, half rounded up."""
    if not count:
        return 0.0
    mean = Decimal(int(total)) / Decimal(int(count))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def rating_summary(db: Session, recipe_id: str) -> Tuple[float, int]:
    """Aggregate the live reviews of a recipe into (average, count)."""
    total, count = (
        db.query(func.coalesce(func.sum(Review.rating), 0), func.count(Review.id))
        .filter(Review.recipe_id == recipe_id)
        .one()
    )
    count = int(count or 0)
    return round_rating(total or 0, count), count


def recompute_recipe_rating(db: Session, recipe_id: str) -> Optional[Tuple[float, int]]:
    """
    Recompute and store a recipe's rating summary.

    Runs after every review create, update or delete. The review write has
    already been committed by the caller, so a failure here is logged and
    dropped rather than raised; the next review mutation will recompute again.

    Returns (average, count), or None if the summary could not be written.
    """
    try:
        average, count = rating_summary(db, recipe_id)
        updated = (
            db.query(Recipe)
            .filter(Recipe.id == recipe_id)
            .update(
                {Recipe.average_rating: average, Recipe.total_ratings: count},
                synchronize_session="fetch",
            )
        )
        if not updated:
            db.rollback()
            logger.warning(f"Recipe {recipe_id} vanished before its rating could be updated")
            return None
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating recipe rating for {recipe_id}: {e}")
        return None

    log_with_context(logger, "debug", "Recipe rating recomputed",
                     recipe_id=recipe_id, average_rating=average, total_ratings=count)
    return average, count


def rating_distribution(db: Session, recipe_id: str) -> list:
    """Review counts per star value, highest rating first."""
    rows = (
        db.query(Review.rating, func.count(Review.id))
        .filter(Review.recipe_id == recipe_id)
        .group_by(Review.rating)
        .order_by(Review.rating.desc())
        .all()
    )
    return [{"rating": rating, "count": count} for rating, count in rows]

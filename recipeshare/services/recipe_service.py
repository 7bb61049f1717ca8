import math
from typing import List, Optional, Tuple

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from recipeshare.database import CategoryEnum, DifficultyEnum, Recipe as DBRecipe, User
from recipeshare.errors import NotFound
from recipeshare.logger import get_logger
from recipeshare.ownership import get_or_404
from recipeshare.schemas.recipe import RecipeCreate, RecipeUpdate
from recipeshare.session_guard import Identity

logger = get_logger("recipes")

SORT_FIELDS = {
    "created_at": DBRecipe.created_at,
    "average_rating": DBRecipe.average_rating,
    "total_ratings": DBRecipe.total_ratings,
    "views": DBRecipe.views,
    "title": DBRecipe.title,
}
DIETARY_FLAGS = ("vegetarian", "vegan", "gluten_free", "dairy_free", "nut_free")


def paginate(query, page: int, limit: int) -> Tuple[list, dict]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    pagination = {
        "current": page,
        "pages": math.ceil(total / limit) if limit else 0,
        "total": total,
        "limit": limit,
    }
    return items, pagination


class RecipeService:
    """Service for recipe-related business logic."""

    def __init__(self, db: Session):
        self.db = db

    def _published(self):
        return self.db.query(DBRecipe).filter(DBRecipe.is_published.is_(True))

    def list_recipes(
        self,
        q: Optional[str] = None,
        category: Optional[CategoryEnum] = None,
        difficulty: Optional[DifficultyEnum] = None,
        cuisine: Optional[str] = None,
        dietary: Optional[dict] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 12,
    ) -> Tuple[List[DBRecipe], dict]:
        query = self._published()

        if q:
            pattern = f"%{q}%"
            query = query.filter(or_(
                DBRecipe.title.ilike(pattern),
                DBRecipe.description.ilike(pattern),
                cast(DBRecipe.ingredients, String).ilike(pattern),
                cast(DBRecipe.tags, String).ilike(pattern),
            ))
        if category:
            query = query.filter(DBRecipe.category == category)
        if difficulty:
            query = query.filter(DBRecipe.difficulty == difficulty)
        if cuisine:
            query = query.filter(DBRecipe.cuisine.ilike(f"%{cuisine}%"))
        for flag, wanted in (dietary or {}).items():
            if wanted and flag in DIETARY_FLAGS:
                query = query.filter(getattr(DBRecipe, flag).is_(True))

        column = SORT_FIELDS.get(sort_by, DBRecipe.created_at)
        if sort_by not in SORT_FIELDS:
            sort_order = "desc"
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), DBRecipe.id)
        return paginate(query, page, limit)

    def featured(self, limit: int = 6) -> List[DBRecipe]:
        return (
            self._published()
            .order_by(DBRecipe.average_rating.desc(), DBRecipe.total_ratings.desc())
            .limit(limit)
            .all()
        )

    def recent(self, limit: int = 8) -> List[DBRecipe]:
        return self._published().order_by(DBRecipe.created_at.desc()).limit(limit).all()

    def category_counts(self) -> List[dict]:
        count = func.count(DBRecipe.id)
        rows = (
            self.db.query(DBRecipe.category, count)
            .filter(DBRecipe.is_published.is_(True))
            .group_by(DBRecipe.category)
            .order_by(count.desc())
            .all()
        )
        return [{"category": category.value, "count": n} for category, n in rows]

    def by_author(self, user_id: str, page: int = 1, limit: int = 12) -> Tuple[List[DBRecipe], dict]:
        query = self._published().filter(DBRecipe.author_id == user_id).order_by(DBRecipe.created_at.desc())
        return paginate(query, page, limit)

    def my_recipes(self, user_id: str) -> List[DBRecipe]:
        return (
            self.db.query(DBRecipe)
            .filter(DBRecipe.author_id == user_id)
            .order_by(DBRecipe.created_at.desc())
            .all()
        )

    def get_recipe(self, recipe_id: str, identity: Optional[Identity] = None) -> DBRecipe:
        """Fetch a recipe for display and count the view."""
        recipe = get_or_404(self.db, DBRecipe, recipe_id, "Recipe")
        if not recipe.is_published and (identity is None or identity.user_id != recipe.author_id):
            raise NotFound("Recipe not found")

        # Read-increment-write; concurrent readers may undercount
        recipe.views = (recipe.views or 0) + 1
        self.db.commit()
        self.db.refresh(recipe)
        return recipe

    def _apply(self, recipe: DBRecipe, fields: dict) -> None:
        dietary_info = fields.pop("dietary_info", None)
        if dietary_info is not None:
            for flag in DIETARY_FLAGS:
                setattr(recipe, flag, bool(dietary_info.get(flag, False)))
        if "nutrition_info" in fields:
            nutrition = fields.pop("nutrition_info")
            recipe.nutrition_info = (
                {k: v for k, v in nutrition.items() if v is not None} if nutrition else None
            )
        for field, value in fields.items():
            setattr(recipe, field, value)

    def create_recipe(self, data: RecipeCreate, author_id: str, image: Optional[str] = None) -> DBRecipe:
        recipe = DBRecipe(author_id=author_id)
        self._apply(recipe, data.model_dump())
        if image:
            recipe.image = image
        self.db.add(recipe)
        self.db.commit()
        self.db.refresh(recipe)
        logger.info(f"Recipe {recipe.id} created by {author_id}")
        return recipe

    def update_recipe(self, recipe: DBRecipe, data: RecipeUpdate, image: Optional[str] = None) -> Tuple[DBRecipe, Optional[str]]:
        """Apply a partial update. Returns the recipe and the image path it replaced, if any."""
        fields = data.model_dump(exclude_unset=True)
        for required in ("title", "description", "category", "difficulty", "prep_time",
                         "cook_time", "servings", "ingredients", "instructions", "tags", "is_published"):
            if required in fields and fields[required] is None:
                fields.pop(required)
        self._apply(recipe, fields)
        replaced_image = None
        if image:
            replaced_image = recipe.image
            recipe.image = image
        self.db.commit()
        self.db.refresh(recipe)
        logger.info(f"Recipe {recipe.id} updated")
        return recipe, replaced_image

    def delete_recipe(self, recipe: DBRecipe) -> Optional[str]:
        """Delete a recipe with its reviews and favorite entries. Returns its image path."""
        image = recipe.image
        recipe_id = recipe.id
        self.db.delete(recipe)
        self.db.commit()
        logger.info(f"Recipe {recipe_id} deleted")
        return image

    def toggle_favorite(self, user_id: str, recipe_id: str) -> dict:
        """
        Add the recipe to the user's favorites, or remove it if already there.

        Read-modify-write on the user's favorite set: two concurrent toggles by
        the same user on the same recipe race, and the last writer wins.
        """
        recipe = get_or_404(self.db, DBRecipe, recipe_id, "Recipe")
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")

        is_favorited = recipe in user.favorites
        if is_favorited:
            user.favorites.remove(recipe)
        else:
            user.favorites.append(recipe)
        self.db.commit()
        return {"is_favorited": not is_favorited}

    def favorite_status(self, user_id: str, recipe_id: str) -> bool:
        recipe = get_or_404(self.db, DBRecipe, recipe_id, "Recipe")
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return recipe in user.favorites

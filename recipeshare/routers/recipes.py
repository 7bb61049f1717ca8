from typing import Optional

from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from recipeshare.database import CategoryEnum, DifficultyEnum, Recipe as DBRecipe, get_db
from recipeshare.errors import AppError, UpstreamFailure, ValidationFailure
from recipeshare.forms import read_recipe_submission, validate_submission
from recipeshare.logger import get_logger
from recipeshare.ownership import owned
from recipeshare.routers.base import api_router
from recipeshare.schemas.recipe import ApiResponse, RecipeCreate, RecipeResponse, RecipeUpdate
from recipeshare.services.recipe_service import RecipeService
from recipeshare.session_guard import Identity, optional_user, require_user
from recipeshare.uploads import delete_image, upload_guard

logger = get_logger("recipes")


def _enum_or_none(enum_cls, value: Optional[str], field: str):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationFailure(errors=[{"field": field, "message": f"Must be one of: {allowed}"}])


@api_router.get("/recipes", response_model=ApiResponse)
def list_recipes(
    q: Optional[str] = Query(None, max_length=100),
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    cuisine: Optional[str] = Query(None, max_length=50),
    vegetarian: Optional[bool] = Query(None),
    vegan: Optional[bool] = Query(None),
    gluten_free: Optional[bool] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    db: Session = Depends(get_db),
):
    service = RecipeService(db)
    recipes, pagination = service.list_recipes(
        q=q.strip() if q else None,
        category=_enum_or_none(CategoryEnum, category, "category"),
        difficulty=_enum_or_none(DifficultyEnum, difficulty, "difficulty"),
        cuisine=cuisine.strip() if cuisine else None,
        dietary={"vegetarian": vegetarian, "vegan": vegan, "gluten_free": gluten_free},
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        success=True,
        recipes=[RecipeResponse.from_db(r) for r in recipes],
        pagination=pagination,
    )


@api_router.get("/recipes/featured", response_model=ApiResponse)
def featured_recipes(db: Session = Depends(get_db)):
    recipes = RecipeService(db).featured()
    return ApiResponse(success=True, recipes=[RecipeResponse.from_db(r) for r in recipes])


@api_router.get("/recipes/recent", response_model=ApiResponse)
def recent_recipes(db: Session = Depends(get_db)):
    recipes = RecipeService(db).recent()
    return ApiResponse(success=True, recipes=[RecipeResponse.from_db(r) for r in recipes])


@api_router.get("/recipes/categories", response_model=ApiResponse)
def recipe_categories(db: Session = Depends(get_db)):
    return ApiResponse(success=True, categories=RecipeService(db).category_counts())


@api_router.get("/recipes/user/{user_id}", response_model=ApiResponse)
def recipes_by_user(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    db: Session = Depends(get_db),
):
    recipes, pagination = RecipeService(db).by_author(user_id, page=page, limit=limit)
    return ApiResponse(
        success=True,
        recipes=[RecipeResponse.from_db(r) for r in recipes],
        pagination=pagination,
    )


@api_router.get("/recipes/my-recipes", response_model=ApiResponse)
def my_recipes(db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    recipes = RecipeService(db).my_recipes(identity.user_id)
    return ApiResponse(success=True, recipes=[RecipeResponse.from_db(r) for r in recipes])


@api_router.get("/recipes/{id}", response_model=ApiResponse)
def get_recipe(id: str, db: Session = Depends(get_db),
               identity: Optional[Identity] = Depends(optional_user)):
    recipe = RecipeService(db).get_recipe(id, identity)
    return ApiResponse(success=True, recipe=RecipeResponse.from_db(recipe))


@api_router.post("/recipes", status_code=201, response_model=ApiResponse)
async def create_recipe(request: Request, db: Session = Depends(get_db),
                        identity: Identity = Depends(require_user)):
    data, image = await read_recipe_submission(request)

    def _create():
        with upload_guard(image) as stored:
            payload = validate_submission(RecipeCreate, data)
            return RecipeService(db).create_recipe(
                payload, identity.user_id, stored.public_path if stored else None
            )

    try:
        recipe = await run_in_threadpool(_create)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Create recipe error: {e}")
        raise UpstreamFailure("Server error creating recipe")
    return ApiResponse(success=True, message="Recipe created successfully", recipe=RecipeResponse.from_db(recipe))


@api_router.put("/recipes/{id}", response_model=ApiResponse)
async def update_recipe(request: Request, db: Session = Depends(get_db),
                        recipe: DBRecipe = Depends(owned(DBRecipe))):
    data, image = await read_recipe_submission(request)

    def _update():
        with upload_guard(image) as stored:
            payload = validate_submission(RecipeUpdate, data)
            return RecipeService(db).update_recipe(recipe, payload, stored.public_path if stored else None)

    try:
        updated, replaced_image = await run_in_threadpool(_update)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Update recipe error: {e}")
        raise UpstreamFailure("Server error updating recipe")

    if replaced_image:
        delete_image(replaced_image)
    return ApiResponse(success=True, message="Recipe updated successfully", recipe=RecipeResponse.from_db(updated))


@api_router.delete("/recipes/{id}", response_model=ApiResponse)
def delete_recipe(db: Session = Depends(get_db), recipe: DBRecipe = Depends(owned(DBRecipe))):
    try:
        image = RecipeService(db).delete_recipe(recipe)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Delete recipe error: {e}")
        raise UpstreamFailure("Server error deleting recipe")
    delete_image(image)
    return ApiResponse(success=True, message="Recipe deleted successfully")


@api_router.post("/recipes/{id}/favorite", response_model=ApiResponse)
def toggle_favorite(id: str, db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    result = RecipeService(db).toggle_favorite(identity.user_id, id)
    message = "Recipe added to favorites" if result["is_favorited"] else "Recipe removed from favorites"
    return ApiResponse(success=True, message=message, **result)


@api_router.get("/recipes/{id}/favorite-status", response_model=ApiResponse)
def favorite_status(id: str, db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    return ApiResponse(success=True, is_favorited=RecipeService(db).favorite_status(identity.user_id, id))

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recipeshare.database import CategoryEnum, DifficultyEnum
from recipeshare.schemas.user import AuthorSummary
from recipeshare.utils_time import format_datetime as format_dt


class ApiResponse(BaseModel):
    """Uniform response envelope; payload keys sit next to `success` and `message`."""
    model_config = ConfigDict(extra="allow")

    success: bool = Field(..., description="True on success, False on error")
    message: Optional[str] = Field(None, description="Optional human-readable message")


class IngredientIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: str = Field(..., min_length=1, max_length=50)
    unit: Optional[str] = Field(None, max_length=30)

    @field_validator('name', 'amount', 'unit', mode='before')
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        return v.strip() if isinstance(v, str) else v


class InstructionIn(BaseModel):
    step_number: int = Field(..., ge=1)
    instruction: str = Field(..., min_length=1, max_length=1000)

    @field_validator('instruction', mode='before')
    @classmethod
    def strip_instruction(cls, v):
        return v.strip() if isinstance(v, str) else v


class DietaryInfo(BaseModel):
    vegetarian: bool = False
    vegan: bool = False
    gluten_free: bool = False
    dairy_free: bool = False
    nut_free: bool = False


class NutritionInfo(BaseModel):
    calories: Optional[int] = Field(None, ge=0)
    protein: Optional[int] = Field(None, ge=0)
    carbs: Optional[int] = Field(None, ge=0)
    fat: Optional[int] = Field(None, ge=0)


def _clean_tags(v: List[str]) -> List[str]:
    """Strip, drop blanks and duplicates, keep first-seen order."""
    seen = []
    for tag in v:
        tag = tag.strip()
        if len(tag) > 30:
            raise ValueError('Tag cannot exceed 30 characters')
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class RecipeCreate(BaseModel):
    """
    Fields a client may set on a new recipe. Anything else in the payload
    (author, average_rating, total_ratings, views, ...) is ignored.
    """
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=3, max_length=100, description="Recipe title (3-100 chars)")
    description: str = Field(..., min_length=10, max_length=1000, description="Description (10-1000 chars)")
    category: CategoryEnum
    cuisine: Optional[str] = Field(None, max_length=50)
    difficulty: DifficultyEnum
    prep_time: int = Field(..., ge=0, le=1440, description="Prep time in minutes (0-1440)")
    cook_time: int = Field(..., ge=0, le=1440, description="Cook time in minutes (0-1440)")
    servings: int = Field(..., ge=1, le=100, description="Servings must be 1-100")
    ingredients: List[IngredientIn] = Field(..., min_length=1, description="At least 1 ingredient required")
    instructions: List[InstructionIn] = Field(..., min_length=1, description="At least 1 instruction required")
    tags: List[str] = Field(default_factory=list)
    dietary_info: DietaryInfo = Field(default_factory=DietaryInfo)
    nutrition_info: Optional[NutritionInfo] = None
    is_published: bool = True

    @field_validator('title', 'description', 'cuisine', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('tags')
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v)


class RecipeUpdate(BaseModel):
    """Partial update; only fields present in the payload are changed."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    category: Optional[CategoryEnum] = None
    cuisine: Optional[str] = Field(None, max_length=50)
    difficulty: Optional[DifficultyEnum] = None
    prep_time: Optional[int] = Field(None, ge=0, le=1440)
    cook_time: Optional[int] = Field(None, ge=0, le=1440)
    servings: Optional[int] = Field(None, ge=1, le=100)
    ingredients: Optional[List[IngredientIn]] = Field(None, min_length=1)
    instructions: Optional[List[InstructionIn]] = Field(None, min_length=1)
    tags: Optional[List[str]] = None
    dietary_info: Optional[DietaryInfo] = None
    nutrition_info: Optional[NutritionInfo] = None
    is_published: Optional[bool] = None

    @field_validator('title', 'description', 'cuisine', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('tags')
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v) if v is not None else v


class RecipeResponse(BaseModel):
    """Schema for recipe response."""
    id: str
    title: str
    description: str
    author: Optional[AuthorSummary] = None
    category: str
    cuisine: Optional[str] = None
    difficulty: str
    prep_time: int
    cook_time: int
    total_time: int
    servings: int
    ingredients: list = []
    instructions: list = []
    tags: List[str] = []
    dietary_info: dict = {}
    nutrition_info: Optional[dict] = None
    image: Optional[str] = None
    average_rating: float
    total_ratings: int
    views: int
    is_published: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_db(cls, recipe):
        return cls(
            id=recipe.id,
            title=recipe.title,
            description=recipe.description,
            author=AuthorSummary.from_db(recipe.author) if recipe.author else None,
            category=recipe.category.value,
            cuisine=recipe.cuisine,
            difficulty=recipe.difficulty.value,
            prep_time=recipe.prep_time,
            cook_time=recipe.cook_time,
            total_time=recipe.total_time,
            servings=recipe.servings,
            ingredients=recipe.ingredients or [],
            instructions=sorted(recipe.instructions or [], key=lambda s: s.get("step_number", 0)),
            tags=recipe.tags or [],
            dietary_info=recipe.dietary_info,
            nutrition_info=recipe.nutrition_info,
            image=recipe.image,
            average_rating=recipe.average_rating or 0.0,
            total_ratings=recipe.total_ratings or 0,
            views=recipe.views or 0,
            is_published=bool(recipe.is_published),
            created_at=format_dt(recipe.created_at),
            updated_at=format_dt(recipe.updated_at),
        )


class RecipeSummary(BaseModel):
    """Compact recipe reference used inside reviews and favorites."""
    id: str
    title: str
    image: Optional[str] = None
    average_rating: float = 0.0

    @classmethod
    def from_db(cls, recipe):
        return cls(id=recipe.id, title=recipe.title, image=recipe.image,
                   average_rating=recipe.average_rating or 0.0)

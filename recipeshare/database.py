"""
SQLAlchemy database setup and ORM models for RecipeShare.
"""

import enum
import uuid

import sqlalchemy as sa
from sqlalchemy import (
    create_engine, Column, String, Integer, Float, Boolean, DateTime, Text, Enum, ForeignKey, JSON, Table
)
from sqlalchemy.orm import sessionmaker, relationship, declarative_base
from sqlalchemy.pool import StaticPool

from recipeshare import config
from recipeshare.security import verify_password
from recipeshare.utils_time import get_now


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection so an in-memory database survives across sessions and threads
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 1800,
    }


engine = create_engine(config.DATABASE_URL, **_engine_options(config.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


# Enums
class CategoryEnum(enum.Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    appetizer = "appetizer"
    dessert = "dessert"
    snack = "snack"
    beverage = "beverage"
    soup = "soup"
    salad = "salad"
    side_dish = "side-dish"
    other = "other"


class DifficultyEnum(enum.Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Tables
user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("recipe_id", String, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=get_now),
)


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=new_id)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    first_name = Column(String(50))
    last_name = Column(String(50))
    bio = Column(Text)
    profile_image = Column(String, default="/images/default-avatar.png")
    created_at = Column(DateTime(timezone=True), default=get_now)
    updated_at = Column(DateTime(timezone=True), default=get_now, onupdate=get_now)
    sessions = relationship("Session", back_populates="user", cascade="all, delete-orphan")
    recipes = relationship("Recipe", back_populates="author")
    reviews = relationship("Review", back_populates="user")
    favorites = relationship("Recipe", secondary=user_favorites, back_populates="favorited_by")

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)


class Session(Base):
    __tablename__ = "sessions"
    session_id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=get_now)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, default=True)
    ip_address = Column(String)
    user_agent = Column(String)
    user = relationship("User", back_populates="sessions")


class Recipe(Base):
    __tablename__ = "recipes"
    owner_attr = "author_id"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(Enum(CategoryEnum, values_callable=_enum_values, name="recipe_category"), nullable=False, index=True)
    cuisine = Column(String(50))
    difficulty = Column(Enum(DifficultyEnum, values_callable=_enum_values, name="recipe_difficulty"), nullable=False)
    prep_time = Column(Integer, nullable=False)
    cook_time = Column(Integer, nullable=False)
    servings = Column(Integer, nullable=False, default=1)
    ingredients = Column(JSON, nullable=False, default=list)    # [{name, amount, unit}]
    instructions = Column(JSON, nullable=False, default=list)   # [{step_number, instruction}]
    tags = Column(JSON, nullable=False, default=list)
    image = Column(String, default=config.DEFAULT_RECIPE_IMAGE)
    vegetarian = Column(Boolean, default=False)
    vegan = Column(Boolean, default=False)
    gluten_free = Column(Boolean, default=False)
    dairy_free = Column(Boolean, default=False)
    nut_free = Column(Boolean, default=False)
    nutrition_info = Column(JSON, nullable=True)
    # Written only by recipeshare.rating
    average_rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=get_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=get_now, onupdate=get_now)
    author = relationship("User", back_populates="recipes")
    reviews = relationship("Review", back_populates="recipe", cascade="all, delete-orphan")
    favorited_by = relationship("User", secondary=user_favorites, back_populates="favorites")

    @property
    def total_time(self) -> int:
        return (self.prep_time or 0) + (self.cook_time or 0)

    @property
    def dietary_info(self) -> dict:
        return {
            "vegetarian": bool(self.vegetarian),
            "vegan": bool(self.vegan),
            "gluten_free": bool(self.gluten_free),
            "dairy_free": bool(self.dairy_free),
            "nut_free": bool(self.nut_free),
        }


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        sa.UniqueConstraint("recipe_id", "user_id", name="uq_review_recipe_user"),
        sa.Index("ix_reviews_recipe_created", "recipe_id", "created_at"),
    )
    owner_attr = "user_id"

    id = Column(String, primary_key=True, default=new_id)
    recipe_id = Column(String, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(100))
    comment = Column(Text, nullable=False)
    helpful_votes = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=get_now)
    updated_at = Column(DateTime(timezone=True), default=get_now, onupdate=get_now)
    recipe = relationship("Recipe", back_populates="reviews")
    user = relationship("User", back_populates="reviews")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    Base.metadata.create_all(bind=engine)

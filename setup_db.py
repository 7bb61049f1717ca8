"""
Database setup script for RecipeShare.
Run this before starting the application for the first time.

    python setup_db.py            # create tables
    python setup_db.py --seed     # create tables and load demo data
"""
import argparse
import sys

from recipeshare import config
from recipeshare.database import SessionLocal, User, init_db
from recipeshare.logger import get_logger
from recipeshare.schemas.auth import RegisterRequest
from recipeshare.schemas.recipe import RecipeCreate
from recipeshare.schemas.review import ReviewCreate
from recipeshare.services.auth_service import AuthService
from recipeshare.services.recipe_service import RecipeService
from recipeshare.services.review_service import ReviewService
from recipeshare.session_guard import Identity

logger = get_logger("setup_db")

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {"username": "chef_maria", "email": "maria@example.com", "first_name": "Maria", "last_name": "Lopez"},
    {"username": "home_cook_sam", "email": "sam@example.com", "first_name": "Sam", "last_name": "Patel"},
]

DEMO_RECIPES = [
    {
        "title": "Classic Margherita Pizza",
        "description": "A simple Neapolitan pizza with tomato, mozzarella and fresh basil.",
        "category": "dinner",
        "cuisine": "Italian",
        "difficulty": "medium",
        "prep_time": 90,
        "cook_time": 10,
        "servings": 2,
        "ingredients": [
            {"name": "Pizza dough", "amount": "250", "unit": "g"},
            {"name": "Tomato sauce", "amount": "80", "unit": "ml"},
            {"name": "Mozzarella", "amount": "125", "unit": "g"},
            {"name": "Basil", "amount": "6", "unit": "leaves"},
        ],
        "instructions": [
            {"step_number": 1, "instruction": "Stretch the dough into a thin round."},
            {"step_number": 2, "instruction": "Spread the sauce and add torn mozzarella."},
            {"step_number": 3, "instruction": "Bake in a very hot oven until blistered, then add basil."},
        ],
        "tags": ["pizza", "italian", "vegetarian"],
        "dietary_info": {"vegetarian": True},
    },
    {
        "title": "Overnight Oats",
        "description": "No-cook breakfast oats soaked overnight with milk and berries.",
        "category": "breakfast",
        "cuisine": "American",
        "difficulty": "easy",
        "prep_time": 5,
        "cook_time": 0,
        "servings": 1,
        "ingredients": [
            {"name": "Rolled oats", "amount": "50", "unit": "g"},
            {"name": "Milk", "amount": "150", "unit": "ml"},
            {"name": "Berries", "amount": "1", "unit": "handful"},
        ],
        "instructions": [
            {"step_number": 1, "instruction": "Mix oats and milk in a jar."},
            {"step_number": 2, "instruction": "Refrigerate overnight and top with berries."},
        ],
        "tags": ["breakfast", "quick"],
        "dietary_info": {"vegetarian": True},
    },
]


def seed(db):
    """Load demo users, recipes, a review and a favorite through the service layer."""
    auth = AuthService(db)
    if db.query(User).filter(User.email == DEMO_USERS[0]["email"]).first():
        print("   ⚠ Demo data already present, skipping")
        return

    users = [
        auth.register_user(RegisterRequest(password=DEMO_PASSWORD, confirm_password=DEMO_PASSWORD, **u))
        for u in DEMO_USERS
    ]
    print(f"   ✓ {len(users)} users created (password: {DEMO_PASSWORD})")

    recipes = RecipeService(db)
    created = [recipes.create_recipe(RecipeCreate(**r), users[0].id) for r in DEMO_RECIPES]
    print(f"   ✓ {len(created)} recipes created")

    reviewer = Identity(user_id=users[1].id, username=users[1].username, session_id="seed")
    ReviewService(db).create_review(
        created[0].id,
        reviewer,
        ReviewCreate(rating=5, title="Perfect", comment="Crispy crust and great flavour, will make again."),
    )
    print("   ✓ Sample review created")

    recipes.toggle_favorite(users[1].id, created[1].id)
    print("   ✓ Sample favorite added")


def setup_database(with_seed: bool = False):
    print("🔧 RecipeShare database setup")
    print("=" * 50)
    print(f"\nDatabase: {config.DATABASE_URL.rsplit('@', 1)[-1]}")

    print("\n1. Creating tables...")
    try:
        init_db()
        print("   ✓ Tables created successfully")
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        print(f"   ✗ Error creating tables: {e}")
        sys.exit(1)

    if with_seed:
        print("\n2. Seeding demo data...")
        db = SessionLocal()
        try:
            seed(db)
        finally:
            db.close()

    print("\n" + "=" * 50)
    print("✓ Setup complete!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create RecipeShare tables")
    parser.add_argument("--seed", action="store_true", help="load demo users, recipes, a review and a favorite")
    args = parser.parse_args()
    setup_database(with_seed=args.seed)

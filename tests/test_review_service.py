import pytest
from sqlalchemy.exc import IntegrityError

from recipeshare.database import CategoryEnum, DifficultyEnum, Recipe, Review, User
from recipeshare.errors import NotFound
from recipeshare.schemas.review import ReviewCreate
from recipeshare.services.review_service import ReviewService
from recipeshare.session_guard import Identity


def test_store_rejection_without_duplicate_is_not_found(db, monkeypatch):
    author = User(username="author", email="author@example.com", password_hash="x")
    reviewer = User(username="reviewer", email="reviewer@example.com", password_hash="x")
    db.add_all([author, reviewer])
    db.commit()
    recipe = Recipe(
        title="Soup", description="A warming vegetable soup.", author_id=author.id,
        category=CategoryEnum.soup, difficulty=DifficultyEnum.easy,
        prep_time=10, cook_time=20, servings=4,
        ingredients=[{"name": "Carrot", "amount": "2"}],
        instructions=[{"step_number": 1, "instruction": "Simmer."}],
    )
    db.add(recipe)
    db.commit()
    recipe_id = recipe.id
    identity = Identity(user_id=reviewer.id, username="reviewer", session_id="s1")

    # Recipe deleted by another request between the lookup and the insert
    def fk_violation():
        raise IntegrityError("INSERT INTO reviews", {}, Exception("FOREIGN KEY constraint failed"))

    monkeypatch.setattr(db, "commit", fk_violation)
    with pytest.raises(NotFound):
        ReviewService(db).create_review(
            recipe_id, identity, ReviewCreate(rating=4, comment="Lovely and warming soup.")
        )
    assert db.query(Review).count() == 0

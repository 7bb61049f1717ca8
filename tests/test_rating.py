import pytest

from recipeshare.database import CategoryEnum, DifficultyEnum, Recipe, Review, User
from recipeshare.rating import rating_distribution, recompute_recipe_rating, round_rating


@pytest.mark.parametrize("total,count,expected", [
    (0, 0, 0.0),
    (5, 1, 5.0),
    (9, 2, 4.5),
    (13, 3, 4.3),   # 4.333...
    (14, 3, 4.7),   # 4.666...
    (33, 8, 4.1),   # 4.125
    (35, 8, 4.4),   # 4.375
    (5, 4, 1.3),    # 1.25 rounds half up
])
def test_round_rating(total, count, expected):
    assert round_rating(total, count) == expected


def _user(db, name):
    user = User(username=name, email=f"{name}@example.com", password_hash="x")
    db.add(user)
    db.commit()
    return user


def _recipe(db, author):
    recipe = Recipe(
        title="Soup", description="A warming vegetable soup.", author_id=author.id,
        category=CategoryEnum.soup, difficulty=DifficultyEnum.easy,
        prep_time=10, cook_time=20, servings=4,
        ingredients=[{"name": "Carrot", "amount": "2"}],
        instructions=[{"step_number": 1, "instruction": "Simmer."}],
    )
    db.add(recipe)
    db.commit()
    return recipe


def test_recompute_uses_every_review(db):
    author = _user(db, "author")
    recipe = _recipe(db, author)
    for i, rating in enumerate([5, 4, 4]):
        reviewer = _user(db, f"reviewer{i}")
        db.add(Review(recipe_id=recipe.id, user_id=reviewer.id, rating=rating, comment="Tasty and simple."))
    db.commit()

    assert recompute_recipe_rating(db, recipe.id) == (4.3, 3)
    db.refresh(recipe)
    assert recipe.average_rating == 4.3
    assert recipe.total_ratings == 3


def test_recompute_with_no_reviews_resets_summary(db):
    author = _user(db, "author")
    recipe = _recipe(db, author)
    recipe.average_rating = 4.0
    recipe.total_ratings = 2
    db.commit()

    assert recompute_recipe_rating(db, recipe.id) == (0.0, 0)
    db.refresh(recipe)
    assert (recipe.average_rating, recipe.total_ratings) == (0.0, 0)


def test_recompute_for_missing_recipe_returns_none(db):
    assert recompute_recipe_rating(db, "3f1c1d3a-0000-4000-8000-000000000000") is None


def test_rating_distribution_highest_first(db):
    author = _user(db, "author")
    recipe = _recipe(db, author)
    for i, rating in enumerate([5, 3, 5]):
        reviewer = _user(db, f"reviewer{i}")
        db.add(Review(recipe_id=recipe.id, user_id=reviewer.id, rating=rating, comment="Tasty and simple."))
    db.commit()

    assert rating_distribution(db, recipe.id) == [{"rating": 5, "count": 2}, {"rating": 3, "count": 1}]

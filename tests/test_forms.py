import pytest

from recipeshare.errors import ValidationFailure
from recipeshare.forms import decode_json_field, decode_recipe_fields, validate_submission
from recipeshare.schemas.recipe import RecipeCreate


def test_json_text_fields_are_decoded():
    data = decode_recipe_fields({
        "title": "Pancakes",
        "ingredients": '[{"name": "Flour", "amount": "200", "unit": "g"}]',
        "tags": '["breakfast"]',
        "dietary_info": '{"vegetarian": true}',
    })
    assert data["ingredients"] == [{"name": "Flour", "amount": "200", "unit": "g"}]
    assert data["tags"] == ["breakfast"]
    assert data["dietary_info"] == {"vegetarian": True}
    assert data["title"] == "Pancakes"


@pytest.mark.parametrize("value,fallback,expected", [
    ("not json", [], []),
    ('{"a": 1}', [], []),
    ("[1, 2]", {}, {}),
    (["already", "decoded"], [], ["already", "decoded"]),
])
def test_undecodable_values_fall_back(value, fallback, expected):
    assert decode_json_field(value, fallback) == expected


def test_fallback_is_reported_by_validation():
    data = decode_recipe_fields({
        "title": "Pancakes",
        "description": "Fluffy weekend pancakes.",
        "category": "breakfast",
        "difficulty": "easy",
        "prep_time": "5",
        "cook_time": "10",
        "servings": "2",
        "ingredients": "oops",
        "instructions": '[{"step_number": 1, "instruction": "Mix and fry."}]',
    })
    with pytest.raises(ValidationFailure) as excinfo:
        validate_submission(RecipeCreate, data)
    fields = [e["field"] for e in excinfo.value.errors]
    assert fields == ["ingredients"]


def test_server_managed_fields_are_ignored():
    recipe = validate_submission(RecipeCreate, {
        "title": "Pancakes",
        "description": "Fluffy weekend pancakes.",
        "category": "breakfast",
        "difficulty": "easy",
        "prep_time": 5,
        "cook_time": 10,
        "servings": 2,
        "ingredients": [{"name": "Flour", "amount": "200"}],
        "instructions": [{"step_number": 1, "instruction": "Mix and fry."}],
        "average_rating": 5,
        "total_ratings": 100,
        "views": 9999,
        "author_id": "someone-else",
    })
    dumped = recipe.model_dump()
    for field in ("average_rating", "total_ratings", "views", "author_id"):
        assert field not in dumped

from types import SimpleNamespace

import pytest

from recipeshare.database import Recipe, Review
from recipeshare.errors import AuthorizationDenied, NotFound
from recipeshare.ownership import OwnershipDecision, check_owner, ensure_not_author, get_or_404, is_valid_id
from recipeshare.session_guard import Identity

ALICE = Identity(user_id="alice-id", username="alice", session_id="s1")


def test_owner_is_allowed():
    recipe = Recipe(author_id="alice-id")
    assert check_owner(ALICE, recipe) is OwnershipDecision.ALLOWED


def test_other_user_is_forbidden():
    review = Review(user_id="bob-id")
    assert check_owner(ALICE, review) is OwnershipDecision.FORBIDDEN


def test_missing_resource_is_not_found():
    assert check_owner(ALICE, None) is OwnershipDecision.NOT_FOUND


def test_review_owner_is_the_reviewer_not_the_recipe_author():
    review = Review(user_id="alice-id", recipe_id="r1")
    assert check_owner(ALICE, review) is OwnershipDecision.ALLOWED
    assert check_owner(Identity("bob-id", "bob", "s2"), review) is OwnershipDecision.FORBIDDEN


def test_author_cannot_review_own_recipe():
    with pytest.raises(AuthorizationDenied):
        ensure_not_author(ALICE, SimpleNamespace(author_id="alice-id"))
    ensure_not_author(ALICE, SimpleNamespace(author_id="bob-id"))


@pytest.mark.parametrize("value,valid", [
    ("3f1c1d3a-0000-4000-8000-000000000000", True),
    ("not-a-uuid", False),
    ("123", False),
])
def test_is_valid_id(value, valid):
    assert is_valid_id(value) is valid


def test_malformed_id_reads_as_not_found(db):
    with pytest.raises(NotFound):
        get_or_404(db, Recipe, "not-a-uuid", "Recipe")

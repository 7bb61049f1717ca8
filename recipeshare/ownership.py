"""
Ownership check shared by every update/delete endpoint over owned resources.

A recipe is owned by its author, a review by the user who wrote it; each
model names its owner column in `owner_attr`.
"""
import enum
import uuid
from typing import Optional

from fastapi import Depends, Path
from sqlalchemy.orm import Session

from recipeshare.database import Recipe, get_db
from recipeshare.errors import AuthorizationDenied, NotFound
from recipeshare.logger import get_logger
from recipeshare.session_guard import Identity, require_user

logger = get_logger("ownership")


class OwnershipDecision(enum.Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


def owner_id(resource) -> Optional[str]:
    return getattr(resource, type(resource).owner_attr, None)


def check_owner(identity: Identity, resource) -> OwnershipDecision:
    if resource is None:
        return OwnershipDecision.NOT_FOUND
    if owner_id(resource) != identity.user_id:
        return OwnershipDecision.FORBIDDEN
    return OwnershipDecision.ALLOWED


def is_valid_id(resource_id: str) -> bool:
    try:
        uuid.UUID(str(resource_id))
    except ValueError:
        return False
    return True


def get_or_404(db: Session, model, resource_id: str, label: str = None):
    """Fetch by primary key; a malformed id is reported the same way as a missing row."""
    label = label or model.__name__
    if not is_valid_id(resource_id):
        raise NotFound(f"{label} not found")
    resource = db.get(model, resource_id)
    if resource is None:
        raise NotFound(f"{label} not found")
    return resource


def authorize_owner(db: Session, model, resource_id: str, identity: Identity):
    """Return the resource if `identity` owns it; raise NotFound or AuthorizationDenied otherwise."""
    resource = db.get(model, resource_id) if is_valid_id(resource_id) else None
    decision = check_owner(identity, resource)
    if decision is OwnershipDecision.NOT_FOUND:
        raise NotFound(f"{model.__name__} not found")
    if decision is OwnershipDecision.FORBIDDEN:
        logger.info(f"User {identity.user_id} denied mutation of {model.__name__} {resource_id}")
        raise AuthorizationDenied()
    return resource


def owned(model):
    """
    Dependency factory: resolves `{id}` in the path to a resource the current
    user owns. The handler receives the loaded resource, so it does not fetch
    it a second time.
    """
    def dependency(
        id: str = Path(...),
        db: Session = Depends(get_db),
        identity: Identity = Depends(require_user),
    ):
        return authorize_owner(db, model, id, identity)

    dependency.__name__ = f"owned_{model.__name__.lower()}"
    return dependency


def ensure_not_author(identity: Identity, recipe: Recipe) -> None:
    """Authors may not review their own recipes."""
    if recipe.author_id == identity.user_id:
        raise AuthorizationDenied("You cannot review your own recipe")

from typing import Optional

from pydantic import BaseModel

from recipeshare.utils_time import format_datetime as format_dt


class AuthorSummary(BaseModel):
    """Public fields shown next to recipes and reviews."""
    id: str
    username: str
    profile_image: Optional[str] = None

    @classmethod
    def from_db(cls, user):
        return cls(id=user.id, username=user.username, profile_image=user.profile_image)


class UserResponse(BaseModel):
    """Schema for the signed-in user's own profile (never includes the password hash)."""
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_db(cls, user):
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            bio=user.bio,
            profile_image=user.profile_image,
            created_at=format_dt(user.created_at),
        )

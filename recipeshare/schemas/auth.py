import re
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, constr, field_validator, model_validator

UsernameStr = constr(strip_whitespace=True, min_length=3, max_length=30)
NameStr = constr(strip_whitespace=True, max_length=50)


class RegisterRequest(BaseModel):
    """Schema for user registration."""
    username: UsernameStr
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str
    first_name: Optional[NameStr] = None
    last_name: Optional[NameStr] = None

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not re.match(r'^[a-zA-Z0-9_]+$', v):
            raise ValueError('Username can only contain letters, numbers, and underscores')
        return v

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode='after')
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError('Passwords do not match')
        return self


class LoginRequest(BaseModel):
    """Schema for login request."""
    email: EmailStr
    password: str = Field(..., min_length=1)
    return_to: Optional[str] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ChangePasswordRequest(BaseModel):
    """Schema for change password request."""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ProfileUpdate(BaseModel):
    first_name: Optional[NameStr] = None
    last_name: Optional[NameStr] = None
    bio: Optional[constr(strip_whitespace=True, max_length=500)] = None

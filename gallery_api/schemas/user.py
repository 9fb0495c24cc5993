"""
User-related Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from gallery_api.models.user import UserPreferences
from gallery_api.schemas.base import ApiModel


class UserCreate(ApiModel):
    """Schema for user registration."""

    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class UserLogin(ApiModel):
    """Schema for user login. ``identifier`` is a username or an email."""

    identifier: str = Field(..., min_length=1)
    password: str


class UserResponse(ApiModel):
    """Schema for user response (excludes password hash and salt)."""

    id: str
    username: str
    email: str
    name: str
    avatar_letter: str
    preferences: UserPreferences


class UserSummary(ApiModel):
    """Other users as listed for direct sharing."""

    id: str
    name: str
    username: str


class ProfileUpdate(ApiModel):
    """Schema for updating the display name and optionally the password."""

    name: str = Field(..., min_length=1, max_length=100)
    new_password: Optional[str] = Field(None, min_length=6, max_length=128)


class Token(BaseModel):
    """Schema for JWT token response."""

    access_token: str
    token_type: str = "bearer"
    session_id: str


class TokenPayload(BaseModel):
    """Schema for JWT token payload."""

    sub: str  # User ID
    sid: str  # ActiveSession ID
    exp: datetime

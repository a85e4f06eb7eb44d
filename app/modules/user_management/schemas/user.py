from typing import Optional
from datetime import datetime

from pydantic import Field, field_validator

from app.core.responses import CamelModel
from app.modules.auth.schemas.auth import PHONE_PATTERN


class UserProfile(CamelModel):
    """User profile returned to client"""
    id: int
    email_address: str
    phone_number: Optional[str] = None
    payments_number: Optional[str] = None
    full_name: str
    profile_picture_url: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    oauth_provider: Optional[str] = None
    is_email_verified: bool
    is_phone_verified: bool
    is_admin: bool
    created_at: datetime
    updated_at: datetime


class UserProfileUpdate(CamelModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    payments_number: Optional[str] = Field(default=None, max_length=20)
    profile_picture_url: Optional[str] = Field(default=None, max_length=500)
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=500)

    @field_validator("full_name")
    @classmethod
    def full_name_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Full name cannot be null")
        return v


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class PostsSummary(CamelModel):
    total: int
    published: int
    draft: int
    scheduled: int
    expired: int

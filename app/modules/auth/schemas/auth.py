from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.responses import CamelModel

PHONE_PATTERN = r"^\+[1-9]\d{1,14}$"


def _normalize_email(email: Optional[str]) -> Optional[str]:
    """Normalize email to lowercase."""
    return email.lower() if email else None


class TokenPayload(BaseModel):
    sub: int
    email: str
    type: str


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class AuthUser(CamelModel):
    id: int
    full_name: str
    email_address: str
    profile_picture_url: Optional[str] = None
    is_email_verified: bool


class AuthResponse(CamelModel):
    user: AuthUser
    tokens: TokenPair


class RegisterRequest(CamelModel):
    email_address: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=2, max_length=255)
    phone_number: Optional[str] = Field(
        default=None,
        pattern=PHONE_PATTERN,
        description="International format, e.g. +256700123456",
    )
    profile_picture_url: Optional[str] = Field(default=None, max_length=500)
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=500)

    @field_validator("email_address")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(CamelModel):
    email_address: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email_address")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class OAuthLoginRequest(CamelModel):
    access_token: str = Field(min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class PhoneAvailability(CamelModel):
    phone_number: str
    available: bool

from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from pydantic import EmailStr, Field

from app.core.responses import CamelModel
from app.modules.posts.models.post import PostStatus

# Blob keys such as "12-1700000000000-uuid.jpg", or absolute URLs kept for older records
IMAGE_REF_PATTERN = r"^(https?://.+|[\w-]+\.[a-zA-Z]{2,5})$"


class PostImageIn(CamelModel):
    image_url: str = Field(pattern=IMAGE_REF_PATTERN, max_length=500)
    display_order: int = Field(ge=0)


class PostCreate(CamelModel):
    title: str = Field(min_length=5, max_length=255)
    category_id: int = Field(gt=0)
    description: str = Field(min_length=10)
    price: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    location: str = Field(min_length=1, max_length=255)
    contact_number: str = Field(min_length=1, max_length=20)
    brand: Optional[str] = Field(default=None, max_length=100)
    email_address: Optional[EmailStr] = None
    delivery_method: Optional[str] = Field(default=None, max_length=100)
    gps_location: Optional[str] = None
    pricing_tier_id: Optional[int] = Field(default=None, gt=0)
    images: List[PostImageIn] = Field(default_factory=list, max_length=10)


class PostUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=5, max_length=255)
    category_id: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, min_length=10)
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=18, decimal_places=2)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_number: Optional[str] = Field(default=None, min_length=1, max_length=20)
    brand: Optional[str] = Field(default=None, max_length=100)
    email_address: Optional[EmailStr] = None
    delivery_method: Optional[str] = Field(default=None, max_length=100)
    gps_location: Optional[str] = None
    # When given, replaces the whole image list
    images: Optional[List[PostImageIn]] = Field(default=None, max_length=10)


class SchedulePostRequest(CamelModel):
    scheduled_time: datetime


class PostImageOut(CamelModel):
    id: int
    image_url: str
    preview_url: Optional[str] = None
    display_order: int


class PostOwner(CamelModel):
    id: int
    full_name: str
    profile_picture_url: Optional[str] = None


class PostCategory(CamelModel):
    id: int
    name: str
    description: Optional[str] = None


class PostOut(CamelModel):
    id: int
    user_id: int
    category_id: int
    title: str
    brand: Optional[str] = None
    description: str
    price: Decimal
    location: str
    gps_location: Optional[str] = None
    delivery_method: Optional[str] = None
    contact_number: str
    email_address: Optional[str] = None
    status: PostStatus
    scheduled_publish_time: Optional[datetime] = None
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    view_count: int
    like_count: int
    pricing_tier_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[PostOwner] = None
    category: Optional[PostCategory] = None
    images: List[PostImageOut] = []
    is_liked: Optional[bool] = None


class LikeToggleOut(CamelModel):
    liked: bool
    like_count: int


class LikerOut(CamelModel):
    user_id: int
    full_name: str
    profile_picture_url: Optional[str] = None
    liked_at: datetime


class PostStatsOut(CamelModel):
    post_id: int
    view_count: int
    total_views: int
    unique_views: int
    like_count: int


class ProcessResult(CamelModel):
    published: int
    expired: int

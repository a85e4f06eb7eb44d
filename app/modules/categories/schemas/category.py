from typing import Optional
from datetime import datetime

from pydantic import Field, field_validator

from app.core.responses import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    icon_url: Optional[str] = Field(default=None, max_length=500)


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    icon_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Category name cannot be null")
        return v


class CategoryOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    created_at: datetime
    post_count: int = 0

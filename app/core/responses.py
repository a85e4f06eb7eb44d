# Uniform response envelope shared by every router:
# {success, data} for single results
# {success, data, pagination: {total, page, limit, pages}} for lists
# Wire format is camelCase; Python attributes stay snake_case

import math
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: camelCase aliases on the wire, populated from ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        pages = math.ceil(total / limit) if limit else 0
        return cls(total=total, page=page, limit=limit, pages=pages)


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination


class MessageOut(CamelModel):
    message: str


def ok(data: Any = None) -> dict:
    return {"success": True, "data": data}


def paginated(items: List[Any], total: int, page: int, limit: int) -> dict:
    return {
        "success": True,
        "data": items,
        "pagination": Pagination.build(total, page, limit),
    }

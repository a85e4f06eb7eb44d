from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.core.responses import ApiResponse, MessageOut, ok
from app.db.session import get_db
from app.deps import require_admin
from app.middleware.rate_limit import read_limiter, write_limiter
from app.modules.categories.schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from app.modules.categories.services.category import CategoryService

router = APIRouter()


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


@router.get("", response_model=ApiResponse[List[CategoryOut]], dependencies=[Depends(read_limiter)])
def list_categories(category_service: CategoryService = Depends(get_category_service)):
    """List all categories with their post counts"""
    return ok(category_service.list_categories())


@router.get("/{category_id}", response_model=ApiResponse[CategoryOut], dependencies=[Depends(read_limiter)])
def read_category(
    category_id: int = Path(..., gt=0),
    category_service: CategoryService = Depends(get_category_service),
):
    return ok(category_service.get_category(category_id))


@router.post(
    "",
    response_model=ApiResponse[CategoryOut],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limiter), Depends(require_admin)],
)
def create_category(data: CategoryCreate, category_service: CategoryService = Depends(get_category_service)):
    return ok(category_service.create_category(data))


@router.put(
    "/{category_id}",
    response_model=ApiResponse[CategoryOut],
    dependencies=[Depends(write_limiter), Depends(require_admin)],
)
def update_category(
    data: CategoryUpdate,
    category_id: int = Path(..., gt=0),
    category_service: CategoryService = Depends(get_category_service),
):
    return ok(category_service.update_category(category_id, data))


@router.delete(
    "/{category_id}",
    response_model=ApiResponse[MessageOut],
    dependencies=[Depends(write_limiter), Depends(require_admin)],
)
def delete_category(
    category_id: int = Path(..., gt=0),
    category_service: CategoryService = Depends(get_category_service),
):
    """Delete a category that no post references"""
    category_service.delete_category(category_id)
    return ok(MessageOut(message="Category deleted successfully"))

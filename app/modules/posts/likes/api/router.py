from typing import Optional

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.core.responses import ApiResponse, PaginatedResponse, paginated, ok
from app.db.session import get_db
from app.deps import CurrentUser, PageParams, authenticate, get_page_params, get_storage, optional_auth
from app.middleware.rate_limit import read_limiter, write_limiter
from app.modules.posts.likes.services.like import LikeService
from app.modules.posts.schemas.post import LikerOut, LikeToggleOut

router = APIRouter()


def get_like_service(db: Session = Depends(get_db), storage=Depends(get_storage)) -> LikeService:
    return LikeService(db, storage)


@router.post("/like", response_model=ApiResponse[LikeToggleOut], dependencies=[Depends(write_limiter)])
def toggle_like(
    *,
    post_id: int = Path(..., gt=0, description="The ID of the post to like or unlike"),
    current_user: CurrentUser = Depends(authenticate),
    like_service: LikeService = Depends(get_like_service),
):
    """Like the post, or remove the like if the caller already liked it"""
    return ok(like_service.toggle_like(post_id, current_user.user_id))


@router.get("/likes", response_model=PaginatedResponse[LikerOut], dependencies=[Depends(read_limiter)])
def list_likes(
    *,
    post_id: int = Path(..., gt=0),
    page: PageParams = Depends(get_page_params),
    current_user: Optional[CurrentUser] = Depends(optional_auth),
    like_service: LikeService = Depends(get_like_service),
):
    viewer_id = current_user.user_id if current_user else None
    likers, total = like_service.list_likers(post_id, viewer_id, page.offset, page.limit)
    return paginated(likers, total, page.page, page.limit)

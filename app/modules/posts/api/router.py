from typing import Optional

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.responses import ApiResponse, MessageOut, ok
from app.db.session import get_db
from app.deps import CurrentUser, authenticate, get_settings, get_storage, optional_auth
from app.middleware.rate_limit import read_limiter, write_limiter
from app.modules.posts.schemas.post import (
    PostCreate,
    PostOut,
    PostStatsOut,
    PostUpdate,
    SchedulePostRequest,
)
from app.modules.posts.services.post import PostService
from app.modules.posts.views.services.view import ViewContext

router = APIRouter()


def get_post_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    storage=Depends(get_storage),
) -> PostService:
    return PostService(db, settings, storage)


def get_view_context(request: Request) -> ViewContext:
    return ViewContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        referrer_url=request.headers.get("referer"),
        session_id=request.headers.get("x-session-id"),
    )


@router.post(
    "",
    response_model=ApiResponse[PostOut],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limiter)],
)
def create_post(
    data: PostCreate,
    current_user: CurrentUser = Depends(authenticate),
    post_service: PostService = Depends(get_post_service),
):
    """
    Create a new Draft post together with its ordered images.
    """
    return ok(post_service.create_post(current_user.user_id, data))


@router.get("/{post_id}", response_model=ApiResponse[PostOut], dependencies=[Depends(read_limiter)])
def read_post(
    post_id: int = Path(..., gt=0),
    current_user: Optional[CurrentUser] = Depends(optional_auth),
    view_context: ViewContext = Depends(get_view_context),
    post_service: PostService = Depends(get_post_service),
):
    """
    Get post by ID and record the view.
    """
    viewer_id = current_user.user_id if current_user else None
    return ok(post_service.get_post(post_id, viewer_id, view_context))


@router.put("/{post_id}", response_model=ApiResponse[PostOut], dependencies=[Depends(write_limiter)])
def update_post(
    data: PostUpdate,
    post_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    post_service: PostService = Depends(get_post_service),
):
    return ok(post_service.update_post(post_id, current_user.user_id, data))


@router.delete("/{post_id}", response_model=ApiResponse[MessageOut], dependencies=[Depends(write_limiter)])
def delete_post(
    post_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    post_service: PostService = Depends(get_post_service),
):
    """
    Delete a post with its images, likes and views.
    Posts that have payment records cannot be deleted.
    """
    post_service.delete_post(post_id, current_user.user_id)
    return ok(MessageOut(message="Post deleted successfully"))


@router.post("/{post_id}/schedule", response_model=ApiResponse[PostOut], dependencies=[Depends(write_limiter)])
def schedule_post(
    data: SchedulePostRequest,
    post_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    post_service: PostService = Depends(get_post_service),
):
    return ok(post_service.schedule_post(post_id, current_user.user_id, data.scheduled_time))


@router.post("/{post_id}/publish", response_model=ApiResponse[PostOut], dependencies=[Depends(write_limiter)])
def publish_post(
    post_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    post_service: PostService = Depends(get_post_service),
):
    return ok(post_service.publish_post(post_id, current_user.user_id))


@router.get("/{post_id}/stats", response_model=ApiResponse[PostStatsOut], dependencies=[Depends(read_limiter)])
def post_stats(
    post_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    post_service: PostService = Depends(get_post_service),
):
    """View and like totals, for the post owner"""
    return ok(post_service.get_stats(post_id, current_user.user_id))

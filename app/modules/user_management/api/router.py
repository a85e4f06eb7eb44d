from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.responses import ApiResponse, MessageOut, ok
from app.db.session import get_db
from app.deps import CurrentUser, authenticate, get_settings, get_storage
from app.middleware.rate_limit import auth_limiter, read_limiter, write_limiter
from app.modules.user_management.schemas.user import (
    ChangePasswordRequest,
    PostsSummary,
    UserProfile,
    UserProfileUpdate,
)
from app.modules.user_management.services.user import UserService

router = APIRouter()


def get_user_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    storage=Depends(get_storage),
) -> UserService:
    return UserService(db, settings, storage)


@router.get("/profile", response_model=ApiResponse[UserProfile], dependencies=[Depends(read_limiter)])
def read_profile(
    current_user: CurrentUser = Depends(authenticate),
    user_service: UserService = Depends(get_user_service),
):
    """Get current user"""
    return ok(user_service.get_profile(current_user.user_id))


@router.put("/profile", response_model=ApiResponse[UserProfile], dependencies=[Depends(write_limiter)])
def update_profile(
    data: UserProfileUpdate,
    current_user: CurrentUser = Depends(authenticate),
    user_service: UserService = Depends(get_user_service),
):
    """Update current user"""
    return ok(user_service.update_profile(current_user.user_id, data))


@router.post("/change-password", response_model=ApiResponse[MessageOut], dependencies=[Depends(auth_limiter)])
def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser = Depends(authenticate),
    user_service: UserService = Depends(get_user_service),
):
    user_service.change_password(current_user.user_id, data)
    return ok(MessageOut(message="Password changed successfully"))


@router.delete("/account", response_model=ApiResponse[MessageOut], dependencies=[Depends(write_limiter)])
def delete_account(
    current_user: CurrentUser = Depends(authenticate),
    user_service: UserService = Depends(get_user_service),
):
    """Deactivate the current user's account; their data is kept"""
    user_service.deactivate(current_user.user_id)
    return ok(MessageOut(message="Account deactivated successfully"))


@router.get("/posts-summary", response_model=ApiResponse[PostsSummary], dependencies=[Depends(read_limiter)])
def posts_summary(
    current_user: CurrentUser = Depends(authenticate),
    user_service: UserService = Depends(get_user_service),
):
    return ok(user_service.posts_summary(current_user.user_id))

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core import security
from app.core.config import Settings
from app.core.errors import (
    AlreadyExistsError,
    BadRequestError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationFailedError,
)
from app.modules.posts.models.post import Post, PostStatus
from app.modules.user_management.models.user import User
from app.modules.user_management.repositories.user import UserRepository
from app.modules.user_management.schemas.user import (
    ChangePasswordRequest,
    PostsSummary,
    UserProfile,
    UserProfileUpdate,
)

logger = logging.getLogger("app")


def to_profile(user: User, storage) -> UserProfile:
    """Convert User model to UserProfile, turning the stored picture key into a preview URL"""
    return UserProfile(
        id=user.id,
        email_address=user.email,
        phone_number=user.phone_number,
        payments_number=user.payments_number,
        full_name=user.full_name,
        profile_picture_url=storage.preview_url(user.profile_picture_url),
        location=user.location,
        bio=user.bio,
        oauth_provider=user.oauth_provider,
        is_email_verified=user.is_email_verified,
        is_phone_verified=user.is_phone_verified,
        is_admin=user.is_admin,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserService:
    def __init__(self, db: Session, settings: Settings, storage):
        self.db = db
        self.settings = settings
        self.storage = storage
        self.users = UserRepository(db)

    def _get_active_user(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if not user or not user.is_active:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, user_id: int) -> UserProfile:
        return to_profile(self._get_active_user(user_id), self.storage)

    def update_profile(self, user_id: int, data: UserProfileUpdate) -> UserProfile:
        user = self._get_active_user(user_id)
        update_data = data.model_dump(exclude_unset=True)

        phone_number: Optional[str] = update_data.get("phone_number")
        if phone_number and phone_number != user.phone_number:
            if self.users.phone_in_use(phone_number, exclude_user_id=user.id):
                raise AlreadyExistsError("This phone number is already registered")
            # A new number has not been verified yet
            update_data["is_phone_verified"] = False

        user = self.users.update(user, **update_data)
        return to_profile(user, self.storage)

    def change_password(self, user_id: int, data: ChangePasswordRequest) -> None:
        user = self._get_active_user(user_id)
        if not user.password_hash:
            raise BadRequestError("Password cannot be changed for accounts that sign in with an OAuth provider")

        if not security.verify_password(data.current_password, user.password_hash, self.settings):
            raise InvalidCredentialsError("Current password is incorrect")

        problems = security.validate_password_strength(data.new_password)
        if problems:
            raise ValidationFailedError(
                ", ".join(problems),
                details=[{"field": "newPassword", "message": problem} for problem in problems],
            )

        self.users.update(user, password_hash=security.get_password_hash(data.new_password, self.settings))
        logger.info(f"User {user.id} changed their password")

    def deactivate(self, user_id: int) -> None:
        user = self._get_active_user(user_id)
        self.users.update(user, is_active=False)
        logger.info(f"User {user.id} deactivated their account")

    def posts_summary(self, user_id: int) -> PostsSummary:
        self._get_active_user(user_id)
        rows = (
            self.db.query(Post.status, func.count(Post.id))
            .filter(Post.user_id == user_id)
            .group_by(Post.status)
            .all()
        )
        counts = {status: count for status, count in rows}
        return PostsSummary(
            total=sum(counts.values()),
            published=counts.get(PostStatus.PUBLISHED, 0),
            draft=counts.get(PostStatus.DRAFT, 0),
            scheduled=counts.get(PostStatus.SCHEDULED, 0),
            expired=counts.get(PostStatus.EXPIRED, 0),
        )

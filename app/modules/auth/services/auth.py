import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import security
from app.core.config import Settings
from app.core.errors import (
    AlreadyExistsError,
    BadRequestError,
    ForbiddenError,
    InvalidCredentialsError,
    ValidationFailedError,
)
from app.modules.auth.schemas.auth import (
    AuthResponse,
    AuthUser,
    LoginRequest,
    RegisterRequest,
    TokenPair,
)
from app.modules.auth.services.oauth import OAuthUserInfo
from app.modules.user_management.models.user import User
from app.modules.user_management.repositories.user import UserRepository

logger = logging.getLogger("app")


class AuthService:
    def __init__(self, db: Session, settings: Settings, storage):
        self.db = db
        self.settings = settings
        self.storage = storage
        self.users = UserRepository(db)

    def _auth_response(self, user: User) -> AuthResponse:
        tokens = security.create_token_pair(user.id, user.email, self.settings)
        return AuthResponse(
            user=AuthUser(
                id=user.id,
                full_name=user.full_name,
                email_address=user.email,
                profile_picture_url=self.storage.preview_url(user.profile_picture_url),
                is_email_verified=user.is_email_verified,
            ),
            tokens=tokens,
        )

    def register(self, data: RegisterRequest) -> AuthResponse:
        if self.users.find_by_email(data.email_address):
            raise AlreadyExistsError("Email address already registered")

        if data.phone_number and self.users.phone_in_use(data.phone_number):
            raise AlreadyExistsError("This phone number is already registered")

        problems = security.validate_password_strength(data.password)
        if problems:
            raise ValidationFailedError(
                ", ".join(problems),
                details=[{"field": "password", "message": problem} for problem in problems],
            )

        try:
            user = self.users.create(
                email=data.email_address,
                phone_number=data.phone_number,
                password_hash=security.get_password_hash(data.password, self.settings),
                full_name=data.full_name,
                profile_picture_url=data.profile_picture_url,
                location=data.location,
                bio=data.bio,
            )
        except IntegrityError:
            # A concurrent registration claimed the email first
            self.db.rollback()
            raise AlreadyExistsError("Email address already registered")
        logger.info(f"Registered user {user.id} ({user.email})")
        return self._auth_response(user)

    def login(self, data: LoginRequest) -> AuthResponse:
        user = self.users.find_by_email(data.email_address)
        # Federated-only accounts have no password to check
        if not user or not user.password_hash:
            raise InvalidCredentialsError()

        if not security.verify_password(data.password, user.password_hash, self.settings):
            logger.info(f"Failed login for user {user.id}")
            raise InvalidCredentialsError()

        if not user.is_active:
            raise ForbiddenError("Account is deactivated")

        return self._auth_response(user)

    def oauth_login(self, info: OAuthUserInfo) -> AuthResponse:
        user = self.users.find_by_oauth(info.provider.value, info.id)

        if not user:
            if not info.email:
                raise BadRequestError("OAuth account has no email address")
            user = self.users.find_by_email(info.email)
            if user:
                # Link the provider to the existing local account
                user = self.users.update(
                    user,
                    oauth_provider=info.provider.value,
                    oauth_provider_id=info.id,
                    is_email_verified=True,
                )
                logger.info(f"Linked {info.provider.value} account to user {user.id}")
            else:
                user = self.users.create(
                    email=info.email.lower(),
                    full_name=info.name or info.email.split("@")[0],
                    profile_picture_url=info.picture,
                    oauth_provider=info.provider.value,
                    oauth_provider_id=info.id,
                    is_email_verified=True,  # Provider-verified email
                )
                logger.info(f"Created user {user.id} from {info.provider.value} login")

        if not user.is_active:
            raise ForbiddenError("Account is deactivated")

        return self._auth_response(user)

    def refresh(self, refresh_token: str) -> TokenPair:
        payload = security.verify_refresh_token(refresh_token, self.settings)
        return security.create_token_pair(payload.sub, payload.email, self.settings)

    def is_phone_available(self, phone_number: str, exclude_user_id: Optional[int] = None) -> bool:
        return not self.users.phone_in_use(phone_number, exclude_user_id)

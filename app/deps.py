from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core import security
from app.core.config import Settings
from app.core.errors import AppError, ForbiddenError, UnauthorizedError, ValidationFailedError
from app.db.session import get_db
from app.modules.user_management.repositories.user import UserRepository

# Bearer scheme; missing headers are reported by the guards themselves
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    email: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request):
    return request.app.state.storage


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_page_params(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    settings: Settings = Depends(get_settings),
) -> PageParams:
    """
    Dependency for page/limit query parameters with configured default and maximum page size
    """
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    if limit > settings.MAX_PAGE_SIZE:
        raise ValidationFailedError(
            details=[{"field": "limit", "message": f"Input should be less than or equal to {settings.MAX_PAGE_SIZE}"}]
        )
    return PageParams(page=page, limit=limit)


def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    Dependency requiring a valid access token; attaches the identity to request.state
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No token provided")

    payload = security.verify_access_token(credentials.credentials, settings)
    user = CurrentUser(user_id=payload.sub, email=payload.email)
    request.state.user = user
    return user


def optional_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Optional[CurrentUser]:
    """
    Dependency resolving the caller's identity when a valid token is present, None otherwise
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        return authenticate(request, credentials, settings)
    except AppError:
        return None


def require_admin(
    current_user: CurrentUser = Depends(authenticate),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Dependency for admin-only routes; checks the stored admin flag
    """
    user = UserRepository(db).find_by_id(current_user.user_id)
    if not user or not user.is_active or not user.is_admin:
        raise ForbiddenError("Admin access required")
    return current_user

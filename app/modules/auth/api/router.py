"""Authentication router: local accounts, OAuth providers and token refresh"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.responses import ApiResponse, ok
from app.db.session import get_db
from app.deps import get_settings, get_storage
from app.middleware.rate_limit import auth_limiter, read_limiter
from app.modules.auth.schemas.auth import (
    AuthResponse,
    LoginRequest,
    OAuthLoginRequest,
    PhoneAvailability,
    RefreshTokenRequest,
    RegisterRequest,
    TokenPair,
)
from app.modules.auth.services.auth import AuthService
from app.modules.auth.services.oauth import OAuthClient, OAuthProvider

router = APIRouter()


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    storage=Depends(get_storage),
) -> AuthService:
    return AuthService(db, settings, storage)


def get_oauth_client(request: Request) -> OAuthClient:
    return request.app.state.oauth_client


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth_limiter)],
)
def register(data: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Create a local account and return a token pair"""
    return ok(auth_service.register(data))


@router.post("/login", response_model=ApiResponse[AuthResponse], dependencies=[Depends(auth_limiter)])
def login(data: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    return ok(auth_service.login(data))


@router.post("/refresh", response_model=ApiResponse[TokenPair], dependencies=[Depends(auth_limiter)])
def refresh_token(data: RefreshTokenRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new access/refresh pair"""
    return ok(auth_service.refresh(data.refresh_token))


async def _oauth_login(
    provider: OAuthProvider,
    data: OAuthLoginRequest,
    auth_service: AuthService,
    oauth_client: OAuthClient,
):
    info = await oauth_client.fetch_user_info(provider, data.access_token)
    return ok(await run_in_threadpool(auth_service.oauth_login, info))


@router.post("/oauth/google", response_model=ApiResponse[AuthResponse], dependencies=[Depends(auth_limiter)])
async def oauth_google(
    data: OAuthLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    oauth_client: OAuthClient = Depends(get_oauth_client),
):
    return await _oauth_login(OAuthProvider.GOOGLE, data, auth_service, oauth_client)


@router.post("/oauth/microsoft", response_model=ApiResponse[AuthResponse], dependencies=[Depends(auth_limiter)])
async def oauth_microsoft(
    data: OAuthLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    oauth_client: OAuthClient = Depends(get_oauth_client),
):
    return await _oauth_login(OAuthProvider.MICROSOFT, data, auth_service, oauth_client)


@router.post("/oauth/facebook", response_model=ApiResponse[AuthResponse], dependencies=[Depends(auth_limiter)])
async def oauth_facebook(
    data: OAuthLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    oauth_client: OAuthClient = Depends(get_oauth_client),
):
    return await _oauth_login(OAuthProvider.FACEBOOK, data, auth_service, oauth_client)


@router.get("/check-phone", response_model=ApiResponse[PhoneAvailability], dependencies=[Depends(read_limiter)])
def check_phone(
    phone_number: str = Query(..., alias="phoneNumber", min_length=1),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Report whether a phone number is free to register"""
    return ok(PhoneAvailability(phone_number=phone_number, available=auth_service.is_phone_available(phone_number)))

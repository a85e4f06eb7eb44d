# Implements security-related functionality:
# Access/refresh JWT generation and verification, each kind with its own secret
# Password hashing and verification using bcrypt
# Password strength rules applied at registration and password change
# Provides core security functions used by the authentication module

import logging
import re
import uuid
from datetime import timedelta
from functools import lru_cache
from typing import Dict, List, Optional

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import ValidationError

from app.core.clock import utcnow
from app.core.config import Settings
from app.core.errors import InvalidTokenError
from app.modules.auth.schemas.auth import TokenPair, TokenPayload

logger = logging.getLogger("app")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


@lru_cache()
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def get_password_hash(password: str, settings: Settings) -> str:
    return _password_context(settings.BCRYPT_ROUNDS).hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str], settings: Settings) -> bool:
    if not hashed_password:
        return False
    try:
        return _password_context(settings.BCRYPT_ROUNDS).verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def validate_password_strength(password: str) -> List[str]:
    """Return the list of unmet password rules; empty means the password is acceptable."""
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not re.search(r"[!@#$%^&*(),.?\":{}|<>]", password):
        errors.append("Password must contain at least one special character")
    return errors


def _secret_for(token_type: str, settings: Settings) -> str:
    if token_type == ACCESS_TOKEN:
        return settings.JWT_ACCESS_SECRET
    return settings.JWT_REFRESH_SECRET


def _create_token(user_id: int, email: str, token_type: str, expires_delta: timedelta, settings: Settings) -> str:
    now = utcnow()
    to_encode: Dict[str, object] = {
        "sub": str(user_id),
        "email": email,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(to_encode, _secret_for(token_type, settings), algorithm=settings.ALGORITHM)


def create_access_token(user_id: int, email: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expires_delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _create_token(user_id, email, ACCESS_TOKEN, expires_delta, settings)


def create_refresh_token(user_id: int, email: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expires_delta = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _create_token(user_id, email, REFRESH_TOKEN, expires_delta, settings)


def create_token_pair(user_id: int, email: str, settings: Settings) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id, email, settings),
        refresh_token=create_refresh_token(user_id, email, settings),
    )


def _verify_token(token: str, token_type: str, settings: Settings) -> TokenPayload:
    try:
        payload = jwt.decode(token, _secret_for(token_type, settings), algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        logger.info(f"Expired {token_type} token presented")
        raise InvalidTokenError(f"Invalid or expired {token_type} token")
    except JWTError as e:
        logger.warning(f"JWT verification error: {e}")
        raise InvalidTokenError(f"Invalid or expired {token_type} token")

    if payload.get("type") != token_type:
        logger.warning(f"Token type mismatch: expected {token_type}, got {payload.get('type')}")
        raise InvalidTokenError(f"Invalid or expired {token_type} token")

    try:
        return TokenPayload(sub=payload.get("sub"), email=payload.get("email"), type=token_type)
    except ValidationError:
        logger.warning("Token payload missing required claims")
        raise InvalidTokenError(f"Invalid or expired {token_type} token")


def verify_access_token(token: str, settings: Settings) -> TokenPayload:
    return _verify_token(token, ACCESS_TOKEN, settings)


def verify_refresh_token(token: str, settings: Settings) -> TokenPayload:
    return _verify_token(token, REFRESH_TOKEN, settings)

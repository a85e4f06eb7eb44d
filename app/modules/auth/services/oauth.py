"""Looks up the caller's identity at an OAuth provider's user-info endpoint."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from app.core.config import Settings
from app.core.errors import ExternalServiceError

logger = logging.getLogger("app")


class OAuthProvider(str, Enum):
    GOOGLE = "Google"
    MICROSOFT = "Microsoft"
    FACEBOOK = "Facebook"


@dataclass
class OAuthUserInfo:
    provider: OAuthProvider
    id: str
    email: Optional[str]
    name: Optional[str]
    picture: Optional[str] = None


class OAuthClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport
        self.userinfo_urls = {
            OAuthProvider.GOOGLE: settings.GOOGLE_USERINFO_URL,
            OAuthProvider.MICROSOFT: settings.MICROSOFT_USERINFO_URL,
            OAuthProvider.FACEBOOK: settings.FACEBOOK_USERINFO_URL,
        }

    async def fetch_user_info(self, provider: OAuthProvider, access_token: str) -> OAuthUserInfo:
        url = self.userinfo_urls[provider]
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            async with httpx.AsyncClient(timeout=self.settings.OAUTH_TIMEOUT_SECONDS, transport=self.transport) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{provider.value} user info request failed: {e}")
            raise ExternalServiceError("Failed to get user info from OAuth provider")

        if response.status_code != 200:
            logger.warning(f"{provider.value} user info returned {response.status_code}: {response.text[:200]}")
            raise ExternalServiceError("Failed to get user info from OAuth provider")

        data = response.json()
        if not data.get("id"):
            raise ExternalServiceError("OAuth provider response did not include a user id")

        return self._parse(provider, data)

    @staticmethod
    def _parse(provider: OAuthProvider, data: dict) -> OAuthUserInfo:
        if provider == OAuthProvider.MICROSOFT:
            # Graph's basic profile has no picture; work accounts may lack "mail"
            return OAuthUserInfo(
                provider=provider,
                id=str(data["id"]),
                email=data.get("mail") or data.get("userPrincipalName"),
                name=data.get("displayName"),
            )
        if provider == OAuthProvider.FACEBOOK:
            picture = (data.get("picture") or {}).get("data", {}).get("url")
            return OAuthUserInfo(
                provider=provider,
                id=str(data["id"]),
                email=data.get("email"),
                name=data.get("name"),
                picture=picture,
            )
        return OAuthUserInfo(
            provider=provider,
            id=str(data["id"]),
            email=data.get("email"),
            name=data.get("name"),
            picture=data.get("picture"),
        )

"""
OAuth authorization-code flows for connecting social accounts.

Supports Instagram (Basic Display) and YouTube (Google OAuth). Only the
redirect URL and the code-for-token exchange live here; the HTTP routes wrap
them.
"""

from urllib.parse import urlencode

import httpx
import structlog
from pydantic import BaseModel

from viralbites.config import Settings
from viralbites.discovery.models import Platform

logger = structlog.get_logger()


class ProviderEndpoints(BaseModel):
    authorize_url: str
    token_url: str
    scope: str


PROVIDERS: dict[Platform, ProviderEndpoints] = {
    Platform.INSTAGRAM: ProviderEndpoints(
        authorize_url="https://api.instagram.com/oauth/authorize",
        token_url="https://api.instagram.com/oauth/access_token",
        scope="user_profile,user_media",
    ),
    Platform.YOUTUBE: ProviderEndpoints(
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        scope="https://www.googleapis.com/auth/youtube.readonly",
    ),
}

# URL path segment for each supported platform
PLATFORM_SLUGS: dict[str, Platform] = {
    "instagram": Platform.INSTAGRAM,
    "youtube": Platform.YOUTUBE,
}


class OAuthConfigError(Exception):
    """Client credentials for a provider are not configured."""


class TokenExchangeError(Exception):
    """The provider refused to exchange the authorization code."""


class OAuthClient:
    """Builds authorize redirects and exchanges callback codes for tokens."""

    def __init__(
        self,
        settings: Settings,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.timeout = timeout
        self.transport = transport

    def _credentials(self, platform: Platform) -> tuple[str, str]:
        if platform == Platform.INSTAGRAM:
            client_id = self.settings.instagram_client_id
            client_secret = self.settings.instagram_client_secret
        elif platform == Platform.YOUTUBE:
            client_id = self.settings.google_client_id
            client_secret = self.settings.google_client_secret
        else:
            raise OAuthConfigError(f"Provider for {platform.value} not configured")

        if not client_id:
            raise OAuthConfigError(f"{platform.value} client id is not configured")
        return client_id, client_secret

    def redirect_uri(self, platform: Platform) -> str:
        base = self.settings.public_base_url.rstrip("/")
        return f"{base}/auth/{platform.value.lower()}/callback"

    def authorize_url(self, platform: Platform) -> str:
        """URL of the provider consent screen for platform."""
        client_id, _ = self._credentials(platform)
        endpoints = PROVIDERS[platform]

        params = {
            "client_id": client_id,
            "redirect_uri": self.redirect_uri(platform),
            "scope": endpoints.scope,
            "response_type": "code",
        }
        if platform == Platform.YOUTUBE:
            params["access_type"] = "offline"

        return f"{endpoints.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, platform: Platform, code: str) -> str:
        """
        Exchange an authorization code for an access token.

        Raises:
            OAuthConfigError: If the provider has no client credentials
            TokenExchangeError: If the provider rejects the exchange
        """
        client_id, client_secret = self._credentials(platform)
        endpoints = PROVIDERS[platform]

        form = {
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri(platform),
            "code": code,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(endpoints.token_url, data=form)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Token exchange failed", platform=platform.value, error=str(e))
            raise TokenExchangeError(f"{platform.value} token exchange failed") from e

        token = data.get("access_token")
        if not token:
            logger.error("Token response missing access_token", platform=platform.value)
            raise TokenExchangeError(f"{platform.value} returned no access token")

        logger.info("Exchanged authorization code", platform=platform.value)
        return token

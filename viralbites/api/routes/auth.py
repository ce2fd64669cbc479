"""
OAuth backend routes.

GET /auth/{platform} redirects to the provider consent screen; the provider
then calls GET /auth/{platform}/callback, which exchanges the code and relays
the outcome to the opener window via postMessage.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from viralbites.api.dependencies import get_oauth_client, get_settings
from viralbites.config import Settings
from viralbites.discovery.models import Platform
from viralbites.oauth.messages import (
    CANCELLED_MESSAGE,
    AuthMessage,
    AuthMessageType,
    render_callback_page,
)
from viralbites.oauth.providers import (
    PLATFORM_SLUGS,
    OAuthClient,
    OAuthConfigError,
    TokenExchangeError,
)

router = APIRouter()
logger = structlog.get_logger()


def _platform(slug: str) -> Platform:
    platform = PLATFORM_SLUGS.get(slug.lower())
    if platform is None:
        raise HTTPException(status_code=404, detail=f"Unsupported platform: {slug}")
    return platform


@router.get("/{platform_slug}")
async def authorize(
    platform_slug: str,
    oauth: OAuthClient = Depends(get_oauth_client),
):
    """Redirect to the provider's authorization page."""
    platform = _platform(platform_slug)
    try:
        url = oauth.authorize_url(platform)
    except OAuthConfigError as e:
        logger.error("OAuth provider not configured", platform=platform.value, error=str(e))
        raise HTTPException(status_code=503, detail=str(e))

    logger.info("Redirecting to OAuth provider", platform=platform.value)
    return RedirectResponse(url)


@router.get("/{platform_slug}/callback")
async def callback(
    platform_slug: str,
    code: str | None = None,
    error: str | None = None,
    oauth: OAuthClient = Depends(get_oauth_client),
    settings: Settings = Depends(get_settings),
):
    """Exchange the authorization code and relay the result to the opener."""
    platform = _platform(platform_slug)

    if error:
        logger.info("OAuth declined by user", platform=platform.value, reason=error)
        message = AuthMessage(type=AuthMessageType.ERROR, platform=platform, error=CANCELLED_MESSAGE)
        return HTMLResponse(render_callback_page(message, settings.frontend_origin))

    if not code:
        return PlainTextResponse("No code provided", status_code=400)

    try:
        token = await oauth.exchange_code(platform, code)
    except (OAuthConfigError, TokenExchangeError) as e:
        logger.error("OAuth callback failed", platform=platform.value, error=str(e))
        message = AuthMessage(
            type=AuthMessageType.ERROR,
            platform=platform,
            error="Authentication failed",
        )
        return HTMLResponse(
            render_callback_page(message, settings.frontend_origin),
            status_code=500,
        )

    message = AuthMessage(type=AuthMessageType.SUCCESS, platform=platform, token=token)
    return HTMLResponse(render_callback_page(message, settings.frontend_origin))

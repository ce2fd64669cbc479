"""
Social account connection (Instagram, YouTube).

Server side: authorize redirects and code exchange (providers).
Client side: popup flow that waits for the callback message (connector).
"""

from viralbites.oauth.connector import AuthMessageChannel, OAuthConnector, PopupWindow
from viralbites.oauth.messages import AuthMessage, AuthMessageType, AuthResponse
from viralbites.oauth.providers import (
    OAuthClient,
    OAuthConfigError,
    TokenExchangeError,
)

__all__ = [
    "AuthMessage",
    "AuthMessageChannel",
    "AuthMessageType",
    "AuthResponse",
    "OAuthClient",
    "OAuthConfigError",
    "OAuthConnector",
    "PopupWindow",
    "TokenExchangeError",
]

"""Exceptions raised by the discovery pipeline."""

import re

LEAKED_KEY_MESSAGE = (
    "Access Denied: Your API Key has been flagged as leaked. Please generate a new key "
    "in Google AI Studio and update your environment variables."
)

_KEY_ERROR_MARKERS = ("leaked", "api key not valid", "api_key_invalid")

# HTTP 403 mentioned as a status, not as part of a longer number or token
_FORBIDDEN_STATUS = re.compile(r"\b403\b")


class ViralBitesError(Exception):
    """Base class for pipeline failures that should reach the caller."""


class ApiKeyError(ViralBitesError):
    """The generation API rejected the key (invalid, revoked or leaked)."""

    def __init__(self, message: str = LEAKED_KEY_MESSAGE):
        super().__init__(message)


class DiscoveryError(ViralBitesError):
    """Trend discovery failed for a reason other than the API key."""


class MalformedResponseError(DiscoveryError):
    """The model reply did not contain decodable JSON."""


class NoPlacesFoundError(ViralBitesError):
    """Discovery completed but produced no candidates."""


def is_api_key_error(exc: BaseException) -> bool:
    """Return True if an SDK/HTTP error signals an unusable API key."""
    if isinstance(exc, ApiKeyError):
        return True

    code = getattr(exc, "code", None)
    if code in (401, 403):
        return True

    message = str(exc).lower()
    if _FORBIDDEN_STATUS.search(message):
        return True
    return any(marker in message for marker in _KEY_ERROR_MARKERS)

"""
Cross-window messages exchanged between the OAuth callback page and the app.

The callback page posts an AuthMessage to window.opener; the opener's
connector turns it into an AuthResponse.
"""

import html
import json
from enum import Enum

from pydantic import BaseModel

from viralbites.discovery.models import Platform

CANCELLED_MESSAGE = "Cancelled by user"


class AuthMessageType(str, Enum):
    SUCCESS = "AUTH_SUCCESS"
    ERROR = "AUTH_ERROR"


class AuthMessage(BaseModel):
    type: AuthMessageType
    platform: Platform
    token: str | None = None
    error: str | None = None


class AuthResponse(BaseModel):
    success: bool
    platform: Platform
    token: str | None = None
    error: str | None = None

    @property
    def cancelled(self) -> bool:
        """User backed out of the provider dialog; callers should stay silent."""
        return not self.success and self.error == CANCELLED_MESSAGE


def render_callback_page(message: AuthMessage, target_origin: str) -> str:
    """
    HTML page that relays message to the opener window and closes itself.

    The payload is JSON-encoded so tokens and error text cannot break out of
    the script block.
    """
    succeeded = message.type == AuthMessageType.SUCCESS
    heading = "Authentication Successful" if succeeded else "Authentication Failed"
    detail = "You can close this window." if succeeded else "Please try again."
    close_delay_ms = 1000 if succeeded else 2000

    payload = json.dumps(message.model_dump(mode="json", exclude_none=True)).replace("</", "<\\/")
    origin = json.dumps(target_origin)

    return f"""<!DOCTYPE html>
<html>
<head><title>{html.escape(heading)}</title></head>
<body>
  <h2>{html.escape(heading)}!</h2>
  <p>{html.escape(detail)}</p>
  <script>
    if (window.opener) {{
      window.opener.postMessage({payload}, {origin});
    }}
    setTimeout(() => window.close(), {close_delay_ms});
  </script>
</body>
</html>
"""

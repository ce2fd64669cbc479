"""
Client-side OAuth connection flow.

Opens the provider popup and waits for whichever happens first: the callback
page posting an AuthMessage, the user closing the popup, or a timeout. Exactly
one outcome is reported and every listener and poller is torn down on the way
out.
"""

import asyncio
from collections.abc import Callable
from typing import Protocol

import structlog

from viralbites.config import Settings
from viralbites.discovery.models import Platform
from viralbites.oauth.messages import AuthMessage, AuthMessageType, AuthResponse

logger = structlog.get_logger()

WINDOW_CLOSED_MESSAGE = "Authentication window closed"
TIMED_OUT_MESSAGE = "Authentication timed out"
POPUP_BLOCKED_MESSAGE = "Popup blocked. Please allow popups for this site."
IN_PROGRESS_MESSAGE = "A connection is already in progress"
START_FAILED_MESSAGE = "Could not start authentication"

MessageListener = Callable[[AuthMessage], None]


class PopupWindow(Protocol):
    """The window the provider consent screen is shown in."""

    @property
    def closed(self) -> bool: ...

    def close(self) -> None: ...


PopupOpener = Callable[[str], PopupWindow | None]


class AuthMessageChannel:
    """Delivers messages posted by callback pages to registered listeners."""

    def __init__(self) -> None:
        self._listeners: list[MessageListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: MessageListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: MessageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def post(self, message: AuthMessage | dict) -> None:
        if isinstance(message, dict):
            message = AuthMessage.model_validate(message)
        for listener in list(self._listeners):
            listener(message)


class OAuthConnector:
    """Connects one social account at a time through a popup flow."""

    def __init__(
        self,
        authorize_url: Callable[[Platform], str],
        open_popup: PopupOpener,
        channel: AuthMessageChannel,
        poll_interval: float = 0.5,
        timeout: float | None = 120.0,
    ) -> None:
        self.authorize_url = authorize_url
        self.open_popup = open_popup
        self.channel = channel
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.connecting = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        authorize_url: Callable[[Platform], str],
        open_popup: PopupOpener,
        channel: AuthMessageChannel,
    ) -> "OAuthConnector":
        return cls(
            authorize_url,
            open_popup,
            channel,
            poll_interval=settings.oauth_poll_interval_seconds,
            timeout=settings.oauth_timeout_seconds,
        )

    async def _wait_until_closed(self, popup: PopupWindow) -> None:
        while not popup.closed:
            await asyncio.sleep(self.poll_interval)

    async def connect(self, platform: Platform) -> AuthResponse:
        """Run the popup flow for platform and report how it ended."""
        if self.connecting:
            return AuthResponse(success=False, platform=platform, error=IN_PROGRESS_MESSAGE)

        try:
            popup = self.open_popup(self.authorize_url(platform))
        except Exception as e:
            logger.error("OAuth popup could not be opened", platform=platform.value, error=str(e))
            return AuthResponse(success=False, platform=platform, error=str(e) or START_FAILED_MESSAGE)

        if popup is None:
            logger.warning("OAuth popup blocked", platform=platform.value)
            return AuthResponse(success=False, platform=platform, error=POPUP_BLOCKED_MESSAGE)

        self.connecting = True
        loop = asyncio.get_running_loop()
        message_received: asyncio.Future[AuthMessage] = loop.create_future()

        def on_message(message: AuthMessage) -> None:
            if message.platform == platform and not message_received.done():
                message_received.set_result(message)

        self.channel.add_listener(on_message)
        popup_closed = asyncio.create_task(self._wait_until_closed(popup))

        try:
            done, _ = await asyncio.wait(
                {message_received, popup_closed},
                timeout=self.timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )

            # A message that lands in the same tick as the close still wins
            if message_received in done:
                message = message_received.result()
                if message.type == AuthMessageType.SUCCESS:
                    logger.info("OAuth connected", platform=platform.value)
                    return AuthResponse(success=True, platform=platform, token=message.token)
                logger.warning("OAuth failed", platform=platform.value, error=message.error)
                return AuthResponse(
                    success=False,
                    platform=platform,
                    error=message.error or "Authentication failed",
                )

            if popup_closed in done:
                logger.info("OAuth popup closed before completion", platform=platform.value)
                return AuthResponse(success=False, platform=platform, error=WINDOW_CLOSED_MESSAGE)

            logger.warning("OAuth timed out", platform=platform.value, timeout=self.timeout)
            popup.close()
            return AuthResponse(success=False, platform=platform, error=TIMED_OUT_MESSAGE)

        finally:
            self.channel.remove_listener(on_message)
            popup_closed.cancel()
            if not message_received.done():
                message_received.cancel()
            self.connecting = False

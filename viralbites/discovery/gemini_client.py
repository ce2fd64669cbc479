"""
Async wrapper around the Google GenAI client.

The SDK call is blocking, so it runs in a worker thread to keep the event loop
free while verification tasks fan out.
"""

import asyncio
from typing import Any

import structlog
from google import genai
from google.genai import types
from google.genai.types import GenerateContentConfig, GoogleMaps, GoogleSearch, HttpOptions, Tool

from viralbites.config import Settings
from viralbites.discovery.models import Coordinates

logger = structlog.get_logger()


class GeminiClient:
    """Runs generate_content calls against the Gemini API."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.client = genai.Client(
            api_key=settings.gemini_api_key,
            http_options=HttpOptions(api_version=settings.api_version),
        )

    async def generate(
        self,
        model: str,
        prompt: str,
        config: GenerateContentConfig | None = None,
    ) -> Any:
        """Send one prompt and return the raw SDK response."""

        def _call_gemini():
            return self.client.models.generate_content(
                model=model,
                contents=prompt,
                config=config,
            )

        logger.debug("Calling Gemini", model=model, prompt_length=len(prompt))
        return await asyncio.to_thread(_call_gemini)


def search_config() -> GenerateContentConfig:
    """Google Search grounding with a JSON reply."""
    return GenerateContentConfig(
        tools=[Tool(google_search=GoogleSearch())],
        response_mime_type="application/json",
    )


def maps_and_search_config(origin: Coordinates, language_code: str) -> GenerateContentConfig:
    """Google Maps + Google Search grounding anchored at the user's position."""
    return GenerateContentConfig(
        tools=[
            Tool(google_maps=GoogleMaps()),
            Tool(google_search=GoogleSearch()),
        ],
        tool_config=types.ToolConfig(
            retrieval_config=types.RetrievalConfig(
                lat_lng=types.LatLng(
                    latitude=origin.latitude,
                    longitude=origin.longitude,
                ),
                language_code=language_code,
            ),
        ),
    )

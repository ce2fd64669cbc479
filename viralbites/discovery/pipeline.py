"""
End-to-end viral search.

Discovery -> Verification (fan-out per candidate) -> Assembler.
"""

import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from viralbites.config import Settings
from viralbites.discovery.assembler import assemble_results
from viralbites.discovery.errors import NoPlacesFoundError
from viralbites.discovery.gemini_client import GeminiClient
from viralbites.discovery.models import (
    Coordinates,
    SearchResult,
    SearchStage,
    UserSettings,
)
from viralbites.discovery.trend_agent import TrendDiscoveryAgent
from viralbites.discovery.verification_agent import MapVerificationAgent

logger = structlog.get_logger()

StatusCallback = Callable[[SearchStage, dict[str, Any]], Awaitable[None]]

NO_PLACES_MESSAGE = "No viral places found matching your criteria."


class ViralSearchPipeline:
    """Runs trend discovery then map verification for one user search."""

    def __init__(
        self,
        settings: Settings,
        discovery: TrendDiscoveryAgent | None = None,
        verification: MapVerificationAgent | None = None,
        client: GeminiClient | None = None,
    ) -> None:
        self.settings = settings
        if (discovery is None or verification is None) and client is None:
            client = GeminiClient(settings)
        self.discovery = discovery or TrendDiscoveryAgent(settings, client)
        self.verification = verification or MapVerificationAgent(settings, client)

    async def search(
        self,
        coords: Coordinates,
        query: str = "",
        user_settings: UserSettings | None = None,
        status_callback: StatusCallback | None = None,
    ) -> SearchResult:
        """
        Find and verify viral places near coords.

        Raises:
            NoPlacesFoundError: If discovery returns no candidates
            ApiKeyError: If the API key is rejected at any stage
            DiscoveryError: If trend discovery fails
        """

        async def emit_status(stage: SearchStage, data: dict[str, Any]) -> None:
            """Emit a status update if callback provided."""
            if status_callback:
                try:
                    await status_callback(stage, data)
                except Exception as e:
                    logger.warning("Status callback failed", stage=stage.value, error=str(e))

        start_time = time.time()

        await emit_status(SearchStage.SEARCHING_TRENDS, {
            "message": "Scanning short-form video trends nearby...",
            "query": query,
        })
        discovery = await self.discovery.find_viral_trends(coords, query, user_settings)

        if not discovery.candidates:
            logger.info("Discovery returned no candidates", query=query)
            raise NoPlacesFoundError(NO_PLACES_MESSAGE)

        await emit_status(SearchStage.VERIFYING_MAPS, {
            "message": f"Verifying {len(discovery.candidates)} places on Maps...",
            "candidates": [c.name for c in discovery.candidates],
        })
        places = await self.verification.verify_candidates(discovery.candidates, coords)
        places = assemble_results(places, discovery.sources)

        result = SearchResult(
            query=query,
            origin=coords,
            places=places,
            sources=discovery.sources,
            total_found=len(places),
            processing_time_seconds=time.time() - start_time,
        )

        await emit_status(SearchStage.COMPLETE, {
            "message": f"Found {result.total_found} viral places",
            "total_found": result.total_found,
        })
        logger.info(
            "Search complete",
            query=query,
            total_found=result.total_found,
            seconds=round(result.processing_time_seconds, 2),
        )
        return result

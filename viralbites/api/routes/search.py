"""
API routes for viral venue search.

POST /api/search returns the full result in one response; POST
/api/search/stream reports progress stages over SSE while the pipeline runs.
"""

import asyncio
import json
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from viralbites.api.dependencies import get_pipeline
from viralbites.discovery.errors import (
    ApiKeyError,
    DiscoveryError,
    NoPlacesFoundError,
    ViralBitesError,
)
from viralbites.discovery.models import (
    Coordinates,
    SearchResult,
    SearchStage,
    UserSettings,
)
from viralbites.discovery.pipeline import ViralSearchPipeline

router = APIRouter()
logger = structlog.get_logger()

LOCATION_REQUIRED_MESSAGE = "Please enable location first."


class SearchRequest(BaseModel):
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    query: str = ""
    settings: UserSettings = Field(default_factory=UserSettings)

    def coordinates(self) -> Coordinates:
        if self.latitude is None or self.longitude is None:
            raise HTTPException(status_code=400, detail=LOCATION_REQUIRED_MESSAGE)
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


def _error_status(error: ViralBitesError) -> int:
    """HTTP status for a pipeline failure."""
    if isinstance(error, ApiKeyError):
        return 403
    if isinstance(error, NoPlacesFoundError):
        return 404
    if isinstance(error, DiscoveryError):
        return 502
    return 500


@router.post("")
async def search(
    request: SearchRequest,
    pipeline: ViralSearchPipeline = Depends(get_pipeline),
) -> SearchResult:
    """Discover and verify viral food places near the given coordinates."""
    coords = request.coordinates()

    try:
        return await pipeline.search(coords, request.query.strip(), request.settings)
    except ViralBitesError as e:
        logger.warning("Search failed", error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=_error_status(e), detail=str(e))


@router.post("/stream")
async def search_stream(
    request: SearchRequest,
    pipeline: ViralSearchPipeline = Depends(get_pipeline),
):
    """
    Run a search with SSE progress updates.

    Streams events:
    - stage: The pipeline moved to a new stage
    - complete: Final SearchResult
    - error: The search failed (with HTTP-equivalent status)
    """
    coords = request.coordinates()
    queue: asyncio.Queue = asyncio.Queue()

    async def on_status(stage: SearchStage, data: dict[str, Any]) -> None:
        await queue.put(("stage", {"stage": stage.value, **data}))

    async def run_search() -> None:
        try:
            result = await pipeline.search(
                coords,
                request.query.strip(),
                request.settings,
                status_callback=on_status,
            )
            await queue.put(("complete", result.model_dump(mode="json")))
        except ViralBitesError as e:
            logger.warning("Streaming search failed", error=str(e), error_type=type(e).__name__)
            await queue.put(("error", {
                "stage": SearchStage.ERROR.value,
                "status": _error_status(e),
                "message": str(e),
            }))
        except Exception as e:
            logger.error("Streaming search crashed", error=str(e))
            await queue.put(("error", {
                "stage": SearchStage.ERROR.value,
                "status": 500,
                "message": "An unexpected error occurred.",
            }))

    async def event_generator():
        task = asyncio.create_task(run_search())
        try:
            while True:
                event_type, data = await queue.get()
                yield {"event": event_type, "data": json.dumps(data)}
                if event_type in ("complete", "error"):
                    break
        finally:
            await asyncio.gather(task, return_exceptions=True)

    return EventSourceResponse(event_generator())

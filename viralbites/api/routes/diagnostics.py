from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from viralbites.api.dependencies import get_diagnostics
from viralbites.discovery.diagnostics import DiagnosticsRunner
from viralbites.discovery.models import Coordinates, TestResult

router = APIRouter()


class DiagnosticsRequest(BaseModel):
    latitude: float = Field(default=0.0, ge=-90.0, le=90.0)
    longitude: float = Field(default=0.0, ge=-180.0, le=180.0)


@router.post("")
async def run_diagnostics(
    request: DiagnosticsRequest | None = None,
    runner: DiagnosticsRunner = Depends(get_diagnostics),
) -> list[TestResult]:
    """Run the distance, connection and maps-image probes."""
    request = request or DiagnosticsRequest()
    coords = Coordinates(latitude=request.latitude, longitude=request.longitude)
    return await runner.run(coords)

"""
Viral venue discovery.

Two-phase search over the Gemini API:
- Trend discovery with Google Search grounding (short-form video buzz)
- Map verification with Google Maps grounding (real, nearby places)
"""

from viralbites.discovery.diagnostics import DiagnosticsRunner
from viralbites.discovery.errors import (
    ApiKeyError,
    DiscoveryError,
    MalformedResponseError,
    NoPlacesFoundError,
    ViralBitesError,
)
from viralbites.discovery.models import (
    Candidate,
    Coordinates,
    SearchResult,
    SearchStage,
    Source,
    UserSettings,
    VenuePlace,
    VideoLink,
)
from viralbites.discovery.pipeline import ViralSearchPipeline
from viralbites.discovery.trend_agent import TrendDiscoveryAgent
from viralbites.discovery.verification_agent import MapVerificationAgent

__all__ = [
    "ApiKeyError",
    "Candidate",
    "Coordinates",
    "DiagnosticsRunner",
    "DiscoveryError",
    "MalformedResponseError",
    "MapVerificationAgent",
    "NoPlacesFoundError",
    "SearchResult",
    "SearchStage",
    "Source",
    "TrendDiscoveryAgent",
    "UserSettings",
    "VenuePlace",
    "VideoLink",
    "ViralBitesError",
    "ViralSearchPipeline",
]

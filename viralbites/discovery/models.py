"""
Data models for viral venue discovery.

Candidate is the partial record produced by trend discovery; VenuePlace is the
final, map-verified record returned to clients.
"""

from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """A latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class Platform(str, Enum):
    """Short-form video platforms a link can point to."""

    INSTAGRAM = "Instagram"
    TIKTOK = "TikTok"
    YOUTUBE = "YouTube"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str | None) -> "Platform":
        """Map a loosely formatted platform name onto the enum."""
        if not value:
            return cls.OTHER
        lowered = value.lower()
        for platform in cls:
            if platform.value.lower() in lowered:
                return platform
        return cls.OTHER


class VideoLink(BaseModel):
    platform: Platform
    url: str
    title: str | None = None


class Source(BaseModel):
    """A citation the search API reported as supporting evidence."""

    uri: str
    title: str


class UserSettings(BaseModel):
    """Connected social accounts, used to bias the discovery prompt."""

    connect_instagram: bool = False
    connect_youtube: bool = False
    connect_tiktok: bool = False


class Candidate(BaseModel):
    """Unverified venue mention produced by trend discovery."""

    name: str
    viral_reason: str | None = None
    cuisine: str | None = None
    popular_dishes: list[str] = Field(default_factory=list)
    sentiment_summary: str | None = None
    video_links: list[VideoLink] = Field(default_factory=list)


class DiscoveryResult(BaseModel):
    candidates: list[Candidate]
    sources: list[Source] = Field(default_factory=list)


class VenuePlace(BaseModel):
    """
    A venue after map verification.

    Immutable once built; the assembler attaches sources by copying.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    viral_reason: str
    cuisine: str
    popular_dishes: list[str] = Field(default_factory=list)
    sentiment_summary: str

    # ─── Maps Data ────────────────────────────────────────
    address: str | None = None
    location: Coordinates | None = None
    rating: float | None = None
    user_rating_count: int | None = None
    price_level: str | None = None  # e.g. "$$"
    google_maps_uri: str | None = None
    image_url: str | None = None
    distance: str = "Unknown"  # e.g. "2.5 km"
    distance_km: float | None = None

    video_links: list[VideoLink] = Field(min_length=1)

    # Metadata
    sources: list[Source] = Field(default_factory=list)
    verified: bool = False


class SearchStage(str, Enum):
    """Progress stages reported while a search runs."""

    IDLE = "IDLE"
    LOCATING = "LOCATING"
    SEARCHING_TRENDS = "SEARCHING_TRENDS"
    VERIFYING_MAPS = "VERIFYING_MAPS"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"
    DIAGNOSING = "DIAGNOSING"


class SearchResult(BaseModel):
    """Result of one end-to-end viral search."""

    query: str
    origin: Coordinates
    places: list[VenuePlace]
    sources: list[Source] = Field(default_factory=list)
    total_found: int
    processing_time_seconds: float


class TestResult(BaseModel):
    """Outcome of a single diagnostics probe."""

    __test__ = False  # not a pytest test class

    name: str
    status: Literal["PASS", "FAIL", "PENDING"]
    message: str

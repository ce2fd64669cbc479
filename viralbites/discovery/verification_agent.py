"""
Map Verification

Resolves each discovered candidate to a real place with Gemini's Google Maps
grounding, looks up a photo, and drops anything outside the search radius.
Candidates are verified concurrently and independently.
"""

import asyncio
import re
from typing import Any
from urllib.parse import quote

import structlog

from viralbites.config import Settings
from viralbites.discovery.errors import ApiKeyError, is_api_key_error
from viralbites.discovery.gemini_client import GeminiClient, maps_and_search_config
from viralbites.discovery.geo import calculate_distance, format_distance
from viralbites.discovery.json_extract import as_text, parse_model_json
from viralbites.discovery.models import (
    Candidate,
    Coordinates,
    Platform,
    VenuePlace,
    VideoLink,
)

logger = structlog.get_logger()

GOOGLE_IMAGE_HOSTS = ("googleusercontent.com", "ggpht.com")

UNKNOWN_DISTANCE = "Unknown"

MIN_IMAGE_URL_LENGTH = 10


def youtube_search_link(name: str, suffix: str = "food shorts") -> VideoLink:
    return VideoLink(
        platform=Platform.YOUTUBE,
        url=f"https://www.youtube.com/results?search_query={quote(f'{name} {suffix}')}",
        title="Search Shorts",
    )


def instagram_tag_link(name: str) -> VideoLink:
    tag = re.sub(r"[^a-zA-Z0-9]", "", name).lower()
    return VideoLink(
        platform=Platform.INSTAGRAM,
        url=f"https://www.instagram.com/explore/tags/{quote(tag)}/",
        title="Search Reels",
    )


def fallback_links(name: str) -> list[VideoLink]:
    """Search-query links used when no real video was found."""
    return [youtube_search_link(name), instagram_tag_link(name)]


def normalize_image_url(photo_uri: Any, size_suffix: str) -> str | None:
    """
    Accept only http(s) image URLs long enough to hold a host and path.

    Google CDN images without a sizing parameter get one appended so the
    client receives a card-sized image.
    """
    if not isinstance(photo_uri, str):
        return None
    photo_uri = photo_uri.strip()
    if not photo_uri.startswith("http") or len(photo_uri) < MIN_IMAGE_URL_LENGTH:
        return None
    if any(host in photo_uri for host in GOOGLE_IMAGE_HOSTS) and "=" not in photo_uri:
        return f"{photo_uri}{size_suffix}"
    return photo_uri


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


class MapVerificationAgent:
    """Cross-references candidates with Google Maps and an image search."""

    def __init__(self, settings: Settings, client: GeminiClient | None = None) -> None:
        self.settings = settings
        self.client = client or GeminiClient(settings)

    def build_prompt(self, candidate: Candidate, coords: Coordinates) -> str:
        return f"""My location: {coords.latitude}, {coords.longitude}.
Candidate Name: "{candidate.name}"
Viral Context: "{candidate.viral_reason or 'Trending food'}"

Task: Verify this specific place and find a visual image.

1. **Verification (Maps)**:
   - Use 'googleMaps' to search for "{candidate.name}".
   - Extract: exact verified name, address, latitude, longitude, rating, userRatingCount, googleMapsUri.
   - If multiple locations exist, choose the one closest to my location.

2. **Image Search (MANDATORY)**:
   - Use 'googleSearch' to find a high-quality photo.
   - Search query: "{candidate.name} food photo" or "{candidate.name} atmosphere".
   - Extract the most relevant 'photoUri' (must be http/https).

3. **Data Merging**:
   - Combine Maps data with the Image URL.

Return a SINGLE JSON object:
{{
    "verifiedName": "...",
    "address": "...",
    "latitude": 12.34,
    "longitude": 56.78,
    "rating": 4.5,
    "userRatingCount": 100,
    "priceLevel": "$$",
    "googleMapsUri": "https://...",
    "photoUri": "https://..."
}}"""

    def build_place(
        self,
        candidate: Candidate,
        coords: Coordinates,
        data: dict[str, Any],
    ) -> VenuePlace | None:
        """
        Merge the maps reply with the candidate.

        Returns None when the resolved place is outside the search radius.
        """
        verified_name = as_text(data.get("verifiedName"))
        latitude = _to_float(data.get("latitude"))
        longitude = _to_float(data.get("longitude"))

        location = None
        distance_km = None
        distance = UNKNOWN_DISTANCE
        if latitude is not None and longitude is not None:
            distance_km = calculate_distance(
                coords.latitude, coords.longitude, latitude, longitude
            )
            if distance_km > self.settings.max_radius_km:
                logger.info(
                    "Dropping candidate outside radius",
                    candidate=candidate.name,
                    distance_km=distance_km,
                )
                return None
            distance = format_distance(distance_km)
            location = Coordinates(latitude=latitude, longitude=longitude)

        name = verified_name or candidate.name or "Unknown Spot"

        return VenuePlace(
            name=name,
            viral_reason=candidate.viral_reason or "Trending locally",
            cuisine=candidate.cuisine or "Food",
            popular_dishes=candidate.popular_dishes,
            sentiment_summary=candidate.sentiment_summary or "Popular spot",
            image_url=normalize_image_url(data.get("photoUri"), self.settings.image_size_suffix),
            address=as_text(data.get("address")),
            location=location,
            rating=_to_float(data.get("rating")),
            user_rating_count=_to_int(data.get("userRatingCount")),
            price_level=as_text(data.get("priceLevel")),
            distance=distance,
            distance_km=distance_km,
            google_maps_uri=as_text(data.get("googleMapsUri")),
            video_links=candidate.video_links or fallback_links(name),
            verified=bool(verified_name and latitude is not None),
        )

    def degraded_place(self, candidate: Candidate) -> VenuePlace:
        """Minimal unverified record used when verification itself failed."""
        name = candidate.name or "Unknown"
        return VenuePlace(
            name=name,
            viral_reason=candidate.viral_reason or "Trending",
            cuisine=candidate.cuisine or "Food",
            popular_dishes=candidate.popular_dishes,
            sentiment_summary="Verification unavailable",
            distance=UNKNOWN_DISTANCE,
            video_links=candidate.video_links or [youtube_search_link(name, "shorts")],
            verified=False,
        )

    async def verify_candidate(
        self,
        candidate: Candidate,
        coords: Coordinates,
    ) -> VenuePlace | None:
        """
        Verify one candidate.

        Raises:
            ApiKeyError: If the API key is rejected; every other failure
                degrades to an unverified record
        """
        prompt = self.build_prompt(candidate, coords)

        try:
            response = await self.client.generate(
                self.settings.verification_model,
                prompt,
                maps_and_search_config(coords, self.settings.language_code),
            )
            data = parse_model_json(response.text or "{}")
            if isinstance(data, list):
                data = next((item for item in data if isinstance(item, dict)), {})
            elif not isinstance(data, dict):
                data = {}

            return self.build_place(candidate, coords, data)

        except Exception as e:
            logger.warning("Verification failed", candidate=candidate.name, error=str(e))
            if is_api_key_error(e):
                raise ApiKeyError() from e
            return self.degraded_place(candidate)

    async def verify_candidates(
        self,
        candidates: list[Candidate],
        coords: Coordinates,
    ) -> list[VenuePlace]:
        """Verify all candidates concurrently and return the surviving places."""
        if not candidates:
            return []

        logger.info("Verifying candidates with maps", count=len(candidates))

        results = await asyncio.gather(
            *[self.verify_candidate(candidate, coords) for candidate in candidates],
            return_exceptions=True,
        )

        places = []
        for candidate, result in zip(candidates, results):
            if isinstance(result, ApiKeyError):
                raise result
            if isinstance(result, BaseException):
                logger.error("Verification task crashed", candidate=candidate.name, error=str(result))
                continue
            if result is not None:
                places.append(result)

        logger.info(
            "Verification complete",
            requested=len(candidates),
            returned=len(places),
            verified=sum(1 for p in places if p.verified),
        )
        return places

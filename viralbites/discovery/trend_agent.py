"""
Trend Discovery

Asks Gemini, grounded with Google Search, for food places near the user that
are trending on short-form video, and collects the citations it used.
"""

from typing import Any

import structlog
from pydantic import ValidationError

from viralbites.config import Settings
from viralbites.discovery.errors import (
    ApiKeyError,
    DiscoveryError,
    MalformedResponseError,
    is_api_key_error,
)
from viralbites.discovery.gemini_client import GeminiClient, search_config
from viralbites.discovery.json_extract import as_text, as_text_list, parse_model_json
from viralbites.discovery.models import (
    Candidate,
    Coordinates,
    DiscoveryResult,
    Platform,
    Source,
    UserSettings,
    VideoLink,
)

logger = structlog.get_logger()

SHORT_FORM_MARKERS = ("/shorts/", "/reel/")

# Keys the model sometimes wraps the place list in when it returns an object
_LIST_KEYS = ("places", "candidates", "results")


def platform_focus(settings: UserSettings | None) -> str:
    """Describe which platforms the prompt should favour."""
    focus = "YouTube Shorts and Instagram Reels"
    if settings is None:
        return focus
    if settings.connect_instagram:
        focus = "Instagram Reels (Prioritize these)"
    if settings.connect_youtube:
        focus += ", YouTube Shorts (Prioritize these)"
    return focus


def classify_citation(uri: str) -> VideoLink | None:
    """Turn a citation URI into a video link if it points at a reel or short."""
    lowered = uri.lower()
    if "instagram.com/reel/" in lowered:
        return VideoLink(platform=Platform.INSTAGRAM, url=uri, title="Watch Reel")
    if "youtube.com/shorts/" in lowered:
        return VideoLink(platform=Platform.YOUTUBE, url=uri, title="Watch Short")
    return None


def extract_grounding(response: Any) -> tuple[list[Source], list[tuple[Source, VideoLink]]]:
    """
    Pull citation sources out of the grounding metadata.

    Returns the sources plus (source, link) pairs for citations that are
    themselves short-form videos.
    """
    sources: list[Source] = []
    video_citations: list[tuple[Source, VideoLink]] = []

    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return sources, video_citations

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        title = getattr(web, "title", None)
        if not uri or not title:
            continue

        source = Source(uri=uri, title=title)
        sources.append(source)

        link = classify_citation(uri)
        if link:
            video_citations.append((source, link))

    return sources, video_citations


def citation_matches(candidate: Candidate, citation: Source) -> bool:
    """
    Loose association of a citation with a candidate.

    Matches when the citation title mentions the candidate, or when the
    candidate name itself contains "viral". Known to over-match.
    """
    name = candidate.name.lower()
    return name in citation.title.lower() or "viral" in name


class TrendDiscoveryAgent:
    """Finds viral food candidates through search-grounded generation."""

    def __init__(self, settings: Settings, client: GeminiClient | None = None) -> None:
        self.settings = settings
        self.client = client or GeminiClient(settings)

    def build_prompt(
        self,
        coords: Coordinates,
        query: str,
        user_settings: UserSettings | None = None,
    ) -> str:
        focus = platform_focus(user_settings)
        context = (
            f"User craving: {query}."
            if query
            else "Look for highly viral food trends in this city/area."
        )

        return f"""I am at Latitude: {coords.latitude}, Longitude: {coords.longitude}.

Task: Find {self.settings.min_places}-{self.settings.max_places} viral food places near me that are specifically trending on {focus}.

Context: {context}

Instructions:
1. Search specifically for "YouTube Shorts food [city]" and "Instagram Reels food [city]".
2. **STRICTLY** only return places that have a viral short-form video presence.
3. **Video Links**: You MUST try to find a real link to a YouTube Short (youtube.com/shorts/...) or Instagram Reel (instagram.com/reel/...).
4. **Images**: Do not generate or hallucinate images here. We will get them from Maps later.
5. Extract the viral reason (e.g. "cheese pull", "hidden gem"), cuisine, and popular dishes.

Output JSON Schema:
[
  {{
    "name": "Social Media Name",
    "viralReason": "Reason",
    "cuisine": "Cuisine",
    "popularDishes": ["Dish1", "Dish2"],
    "sentimentSummary": "Sentiment",
    "videoLinks": [
      {{ "platform": "YouTube" | "Instagram", "url": "https://...", "title": "Title" }}
    ]
  }}
]"""

    def parse_candidates(self, response_text: str | None) -> list[Candidate]:
        """Parse the model reply into candidates, skipping unusable entries."""
        data = parse_model_json(response_text or "[]")

        if isinstance(data, dict):
            nested = next(
                (data[key] for key in _LIST_KEYS if isinstance(data.get(key), list)),
                None,
            )
            if nested is not None:
                data = nested
            elif data.get("name"):
                data = [data]
            else:
                data = []

        if not isinstance(data, list):
            raise MalformedResponseError("Expected a JSON array of places")

        candidates = []
        for item in data:
            name = as_text(item.get("name")) if isinstance(item, dict) else None
            if not name:
                logger.warning("Skipping unusable candidate", item=str(item)[:200])
                continue

            try:
                candidate = Candidate(
                    name=name,
                    viral_reason=as_text(item.get("viralReason")),
                    cuisine=as_text(item.get("cuisine")),
                    popular_dishes=as_text_list(item.get("popularDishes")),
                    sentiment_summary=as_text(item.get("sentimentSummary")),
                    video_links=self._parse_video_links(item.get("videoLinks")),
                )
            except ValidationError as e:
                logger.warning("Skipping invalid candidate", name=name, error=str(e))
                continue

            candidates.append(candidate)

        return candidates

    def _parse_video_links(self, raw_links: Any) -> list[VideoLink]:
        """Keep only links that point at an actual short or reel."""
        if not isinstance(raw_links, list):
            return []

        links = []
        for raw in raw_links:
            if not isinstance(raw, dict):
                continue
            url = raw.get("url")
            if not isinstance(url, str) or not any(m in url for m in SHORT_FORM_MARKERS):
                continue
            links.append(
                VideoLink(
                    platform=Platform.parse(as_text(raw.get("platform"))),
                    url=url,
                    title=as_text(raw.get("title")),
                )
            )
        return links

    def attach_citation_links(
        self,
        candidates: list[Candidate],
        video_citations: list[tuple[Source, VideoLink]],
    ) -> list[Candidate]:
        """Add citation-derived video links to the candidates they mention."""
        enriched = []
        for candidate in candidates:
            links = list(candidate.video_links)
            for citation, link in video_citations:
                if not citation_matches(candidate, citation):
                    continue
                if any(existing.url == link.url for existing in links):
                    continue
                links.append(link)
            enriched.append(candidate.model_copy(update={"video_links": links}))
        return enriched

    async def find_viral_trends(
        self,
        coords: Coordinates,
        query: str = "",
        user_settings: UserSettings | None = None,
    ) -> DiscoveryResult:
        """
        Discover viral candidates near coords.

        Raises:
            ApiKeyError: If the API key is invalid or flagged as leaked
            MalformedResponseError: If the reply holds no decodable JSON
            DiscoveryError: For any other failure
        """
        prompt = self.build_prompt(coords, query, user_settings)
        logger.info(
            "Searching for viral trends",
            latitude=coords.latitude,
            longitude=coords.longitude,
            query=query,
        )

        try:
            response = await self.client.generate(
                self.settings.discovery_model,
                prompt,
                search_config(),
            )

            sources, video_citations = extract_grounding(response)
            candidates = self.parse_candidates(response.text)
            candidates = self.attach_citation_links(candidates, video_citations)

        except MalformedResponseError:
            raise
        except Exception as e:
            logger.error("Trend discovery failed", error=str(e))
            if is_api_key_error(e):
                raise ApiKeyError() from e
            raise DiscoveryError("Failed to discover viral trends. Please try again.") from e

        logger.info(
            "Discovered viral candidates",
            count=len(candidates),
            sources=len(sources),
            video_citations=len(video_citations),
        )
        return DiscoveryResult(candidates=candidates, sources=sources)

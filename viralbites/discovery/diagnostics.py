"""
Diagnostics

Smoke tests for the distance maths, the Gemini connection and a live maps
verification. Each probe is isolated so one failure never stops the rest.
"""

import structlog

from viralbites.config import Settings
from viralbites.discovery.errors import is_api_key_error
from viralbites.discovery.gemini_client import GeminiClient
from viralbites.discovery.geo import calculate_distance
from viralbites.discovery.models import Candidate, Coordinates, TestResult
from viralbites.discovery.verification_agent import MapVerificationAgent

logger = structlog.get_logger()

# A venue that reliably resolves on Maps, near Times Square
PROBE_CANDIDATE = Candidate(name="Starbucks", viral_reason="Test")
PROBE_COORDINATES = Coordinates(latitude=40.7580, longitude=-73.9855)


class DiagnosticsRunner:
    def __init__(
        self,
        settings: Settings,
        client: GeminiClient | None = None,
        verification: MapVerificationAgent | None = None,
    ) -> None:
        self.settings = settings
        self.client = client or GeminiClient(settings)
        self.verification = verification or MapVerificationAgent(settings, self.client)

    def check_distance(self) -> TestResult:
        name = "Distance Algorithm"
        try:
            dist = calculate_distance(0, 0, 0, 1)
            if 110 < dist < 112:
                return TestResult(name=name, status="PASS", message=f"Calculated 1 deg ≈ {dist}km")
            return TestResult(name=name, status="FAIL", message=f"Math error: {dist}km")
        except Exception as e:
            return TestResult(name=name, status="FAIL", message=str(e))

    async def check_connection(self) -> TestResult:
        name = "Gemini API Connection"
        try:
            response = await self.client.generate(self.settings.discovery_model, "Ping")
            if response.text:
                return TestResult(
                    name=name,
                    status="PASS",
                    message=f"Connected to {self.settings.discovery_model}.",
                )
            return TestResult(name=name, status="FAIL", message="No text returned.")
        except Exception as e:
            logger.warning("Connection probe failed", error=str(e))
            if is_api_key_error(e):
                return TestResult(name=name, status="FAIL", message="API Key Invalid/Leaked (403)")
            return TestResult(name=name, status="FAIL", message=str(e))

    async def check_maps_image(self) -> TestResult:
        name = "Maps Image Fetch"
        try:
            places = await self.verification.verify_candidates([PROBE_CANDIDATE], PROBE_COORDINATES)
            if not places:
                return TestResult(name=name, status="FAIL", message="Verification returned no results.")

            place = places[0]
            if place.image_url and place.image_url.startswith("http"):
                return TestResult(
                    name=name,
                    status="PASS",
                    message=f"Found image: {place.image_url[:30]}...",
                )
            return TestResult(
                name=name,
                status="FAIL",
                message=f"Verified '{place.name}' but image URL is missing.",
            )
        except Exception as e:
            logger.warning("Maps probe failed", error=str(e))
            return TestResult(name=name, status="FAIL", message=str(e))

    async def run(self, coords: Coordinates | None = None) -> list[TestResult]:
        """Run every probe in order and collect the results."""
        logger.info(
            "Running diagnostics",
            latitude=coords.latitude if coords else None,
            longitude=coords.longitude if coords else None,
        )
        results = [
            self.check_distance(),
            await self.check_connection(),
            await self.check_maps_image(),
        ]
        logger.info(
            "Diagnostics complete",
            passed=sum(1 for r in results if r.status == "PASS"),
            total=len(results),
        )
        return results

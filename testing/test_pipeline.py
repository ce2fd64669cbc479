import asyncio

import pytest

from testing.conftest import FakeGeminiClient, json_response
from viralbites.discovery.errors import ApiKeyError, NoPlacesFoundError
from viralbites.discovery.models import (
    Candidate,
    Coordinates,
    DiscoveryResult,
    SearchStage,
    Source,
)
from viralbites.discovery.pipeline import NO_PLACES_MESSAGE, ViralSearchPipeline

ORIGIN = Coordinates(latitude=40.0, longitude=-74.0)


class FakeDiscovery:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def find_viral_trends(self, coords, query="", user_settings=None):
        self.calls.append((coords, query, user_settings))
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


class FakeVerification:
    def __init__(self):
        self.calls = []

    async def verify_candidates(self, candidates, coords):
        self.calls.append(candidates)
        return []


def test_zero_candidates_raises_before_verification(settings):
    discovery = FakeDiscovery(DiscoveryResult(candidates=[]))
    verification = FakeVerification()
    pipeline = ViralSearchPipeline(settings, discovery, verification)

    with pytest.raises(NoPlacesFoundError) as exc_info:
        asyncio.run(pipeline.search(ORIGIN, "ramen"))

    assert str(exc_info.value) == NO_PLACES_MESSAGE
    assert discovery.calls[0][1] == "ramen"
    assert verification.calls == []


def test_discovery_errors_propagate(settings):
    pipeline = ViralSearchPipeline(settings, FakeDiscovery(ApiKeyError()), FakeVerification())
    with pytest.raises(ApiKeyError):
        asyncio.run(pipeline.search(ORIGIN))


def test_full_search_with_fake_gemini(settings):
    sources = [("https://www.eater.com/nyc", "Eater NY")]

    def responder(model, prompt):
        if model == settings.discovery_model:
            return json_response(
                [{"name": "Lost Diner"}, {"name": "Near Deli"}, {"name": "Far Farm"}],
                sources,
            )
        if "Lost Diner" in prompt:
            return json_response({"verifiedName": None})
        if "Near Deli" in prompt:
            return json_response({"verifiedName": "Near Deli", "latitude": 40.01, "longitude": -74.0})
        return json_response({"verifiedName": "Far Farm", "latitude": 41.0, "longitude": -74.0})

    client = FakeGeminiClient(responder)
    pipeline = ViralSearchPipeline(settings, client=client)

    result = asyncio.run(pipeline.search(ORIGIN, "deli"))

    assert len(client.calls) == 4
    assert [p.name for p in result.places] == ["Near Deli", "Lost Diner"]
    assert [p.verified for p in result.places] == [True, False]
    assert result.total_found == 2
    assert result.query == "deli"
    assert result.origin == ORIGIN
    assert result.sources == [Source(uri="https://www.eater.com/nyc", title="Eater NY")]
    assert all(p.sources == result.sources for p in result.places)
    assert result.processing_time_seconds >= 0


def test_stages_are_reported_in_order(settings):
    discovery = FakeDiscovery(DiscoveryResult(candidates=[Candidate(name="A")]))
    pipeline = ViralSearchPipeline(settings, discovery, FakeVerification())
    stages = []

    async def on_status(stage, data):
        stages.append((stage, data))

    result = asyncio.run(pipeline.search(ORIGIN, status_callback=on_status))

    assert [stage for stage, _ in stages] == [
        SearchStage.SEARCHING_TRENDS,
        SearchStage.VERIFYING_MAPS,
        SearchStage.COMPLETE,
    ]
    assert stages[1][1]["candidates"] == ["A"]
    assert stages[2][1]["total_found"] == 0
    assert result.places == []


def test_failing_status_callback_does_not_abort_search(settings):
    discovery = FakeDiscovery(DiscoveryResult(candidates=[Candidate(name="A")]))
    pipeline = ViralSearchPipeline(settings, discovery, FakeVerification())

    async def on_status(stage, data):
        raise RuntimeError("client went away")

    result = asyncio.run(pipeline.search(ORIGIN, status_callback=on_status))

    assert result.total_found == 0

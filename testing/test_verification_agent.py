import asyncio

import pytest

from testing.conftest import FakeGeminiClient, json_response, make_response
from testing.sample_inputs import get_sample_candidates
from viralbites.discovery.errors import ApiKeyError
from viralbites.discovery.geo import calculate_distance
from viralbites.discovery.models import Candidate, Coordinates, Platform
from viralbites.discovery.verification_agent import (
    MapVerificationAgent,
    fallback_links,
    normalize_image_url,
)

ORIGIN = Coordinates(latitude=40.0, longitude=-74.0)

# 0.2249 degrees of latitude is 25.0 km
FAR_LATITUDE = 40.2249


def maps_reply(**overrides):
    payload = {
        "verifiedName": "Joe's Pizza Broadway",
        "address": "1435 Broadway, New York, NY",
        "latitude": 40.01,
        "longitude": -74.0,
        "rating": 4.5,
        "userRatingCount": 12000,
        "priceLevel": "$",
        "googleMapsUri": "https://maps.google.com/?cid=1",
        "photoUri": "https://example.com/pizza.jpg",
    }
    payload.update(overrides)
    return json_response(payload)


def make_agent(settings, responder):
    client = FakeGeminiClient(responder)
    return MapVerificationAgent(settings, client), client


def verify_one(agent, candidate=None):
    candidate = candidate or Candidate(name="Joe's Pizza", viral_reason="Classic slice")
    return asyncio.run(agent.verify_candidate(candidate, ORIGIN))


def test_verified_place_is_built_from_maps_reply(settings):
    agent, client = make_agent(settings, lambda m, p: maps_reply())

    place = verify_one(agent)

    assert client.calls[0][0] == settings.verification_model
    assert place.name == "Joe's Pizza Broadway"
    assert place.verified is True
    assert place.distance == "1.1 km"
    assert place.distance_km == 1.1
    assert place.location == Coordinates(latitude=40.01, longitude=-74.0)
    assert place.rating == 4.5
    assert place.user_rating_count == 12000
    assert place.price_level == "$"
    assert place.viral_reason == "Classic slice"
    assert place.cuisine == "Food"
    assert place.sentiment_summary == "Popular spot"
    assert place.sources == []


def test_prompt_names_the_candidate_and_origin(settings):
    agent, client = make_agent(settings, lambda m, p: maps_reply())
    verify_one(agent)

    prompt = client.calls[0][1]
    assert 'Candidate Name: "Joe\'s Pizza"' in prompt
    assert "My location: 40.0, -74.0." in prompt


def test_candidate_at_25_km_is_dropped(settings):
    assert calculate_distance(40.0, -74.0, FAR_LATITUDE, -74.0) == 25.0
    agent, _ = make_agent(settings, lambda m, p: maps_reply(latitude=FAR_LATITUDE))

    assert verify_one(agent) is None


def test_unresolvable_coordinates_are_kept_unverified(settings):
    agent, _ = make_agent(settings, lambda m, p: maps_reply(latitude=None, longitude=None))

    place = verify_one(agent)

    assert place is not None
    assert place.verified is False
    assert place.distance == "Unknown"
    assert place.distance_km is None
    assert place.location is None


@pytest.mark.parametrize(
    "name, latitude, expected",
    [
        ("Joe's Pizza", 40.01, True),
        ("", 40.01, False),
        (None, 40.01, False),
        ("Joe's Pizza", None, False),
    ],
)
def test_verified_requires_name_and_latitude(settings, name, latitude, expected):
    agent, _ = make_agent(settings, lambda m, p: maps_reply(verifiedName=name, latitude=latitude))
    assert verify_one(agent).verified is expected


def test_coordinates_given_as_strings_are_accepted(settings):
    agent, _ = make_agent(settings, lambda m, p: maps_reply(latitude="40.01", longitude="-74.0"))
    assert verify_one(agent).distance == "1.1 km"


def test_google_cdn_image_gets_size_suffix_once(settings):
    url = "https://lh3.googleusercontent.com/p/AF1QipN"
    agent, _ = make_agent(settings, lambda m, p: maps_reply(photoUri=url))

    place = verify_one(agent)

    assert place.image_url == url + "=w400-h300-k-no"
    assert normalize_image_url(place.image_url, "=w400-h300-k-no") == place.image_url


def test_google_cdn_image_with_size_is_untouched():
    url = "https://lh5.ggpht.com/photo=w800"
    assert normalize_image_url(url, "=w400-h300-k-no") == url


@pytest.mark.parametrize(
    "photo", [None, 42, "", "http", "https://", "data:image/png;base64,xx", "/relative.jpg"]
)
def test_invalid_images_are_left_unset(settings, photo):
    agent, _ = make_agent(settings, lambda m, p: maps_reply(photoUri=photo))
    assert verify_one(agent).image_url is None


def test_existing_video_links_are_kept(settings):
    candidate = get_sample_candidates()[0]
    agent, _ = make_agent(settings, lambda m, p: maps_reply())

    place = verify_one(agent, candidate)

    assert place.video_links == candidate.video_links


def test_fallback_links_use_resolved_name(settings):
    agent, _ = make_agent(settings, lambda m, p: maps_reply())

    place = verify_one(agent)

    youtube, instagram = place.video_links
    assert youtube.platform == Platform.YOUTUBE
    assert youtube.url == (
        "https://www.youtube.com/results?search_query=Joe%27s%20Pizza%20Broadway%20food%20shorts"
    )
    assert instagram.platform == Platform.INSTAGRAM
    assert instagram.url == "https://www.instagram.com/explore/tags/joespizzabroadway/"


def test_fallback_links_fall_back_to_original_name(settings):
    agent, _ = make_agent(settings, lambda m, p: maps_reply(verifiedName=None))
    place = verify_one(agent)
    assert place.name == "Joe's Pizza"
    assert place.video_links == fallback_links("Joe's Pizza")


def test_generic_failure_degrades_to_unverified_record(settings):
    agent, _ = make_agent(settings, lambda m, p: RuntimeError("Rpc failed"))
    candidate = Candidate(name="Joe's Pizza", cuisine="Pizza", sentiment_summary="Loved")

    place = verify_one(agent, candidate)

    assert place.name == "Joe's Pizza"
    assert place.verified is False
    assert place.sentiment_summary == "Verification unavailable"
    assert place.distance == "Unknown"
    assert place.address is None
    assert place.location is None
    assert place.cuisine == "Pizza"
    assert len(place.video_links) == 1
    assert place.video_links[0].platform == Platform.YOUTUBE


def test_malformed_reply_degrades_instead_of_dropping(settings):
    agent, _ = make_agent(settings, lambda m, p: make_response("I could not find it."))
    place = verify_one(agent)
    assert place.sentiment_summary == "Verification unavailable"


def test_leaked_key_propagates(settings):
    agent, _ = make_agent(settings, lambda m, p: RuntimeError("API key was reported as leaked"))
    with pytest.raises(ApiKeyError):
        verify_one(agent)


def test_verify_candidates_skips_api_for_empty_input(settings):
    agent, client = make_agent(settings, lambda m, p: maps_reply())
    assert asyncio.run(agent.verify_candidates([], ORIGIN)) == []
    assert client.calls == []


def test_verify_candidates_fans_out_and_keeps_input_order(settings):
    replies = {
        "Near": maps_reply(verifiedName="Near", latitude=40.01),
        "Far": maps_reply(verifiedName="Far", latitude=FAR_LATITUDE),
        "Lost": maps_reply(verifiedName=None, latitude=None, longitude=None),
        "Broken": RuntimeError("Rpc failed"),
    }

    def responder(model, prompt):
        for name, reply in replies.items():
            if f'Candidate Name: "{name}"' in prompt:
                return reply
        raise AssertionError("unexpected prompt")

    agent, client = make_agent(settings, responder)
    candidates = [Candidate(name=name) for name in replies]

    places = asyncio.run(agent.verify_candidates(candidates, ORIGIN))

    assert len(client.calls) == 4
    assert [p.name for p in places] == ["Near", "Lost", "Broken"]
    assert all(p.video_links for p in places)
    assert all(p.distance_km is None or p.distance_km <= 20 for p in places)


def test_verify_candidates_raises_when_any_key_error(settings):
    def responder(model, prompt):
        if "Bad" in prompt:
            return RuntimeError("403 Forbidden")
        return maps_reply()

    agent, _ = make_agent(settings, responder)
    candidates = [Candidate(name="Good"), Candidate(name="Bad")]

    with pytest.raises(ApiKeyError):
        asyncio.run(agent.verify_candidates(candidates, ORIGIN))

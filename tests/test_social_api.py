from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from nexus.errors import ProviderUnavailable
from nexus.tools import twitter_api
from nexus.tools.social_api import SocialApiClient, normalize_profile_payload, normalize_search_payload
from fakes import FakeClient, client_factory, json_response


def test_profile_payload_with_user_and_tweets():
    result = normalize_profile_payload(
        "acme",
        {
            "user": {
                "id": "42",
                "name": "Acme",
                "screen_name": "acme_xyz",
                "avatar": "https://img/acme.png",
                "metrics": {"followers_count": 1200, "following_count": 3},
            },
            "tweets": [{"id": 7, "full_text": "gm"}, "not-a-tweet", {"id": None, "text": ""}],
        },
    )
    assert result.profile.username == "acme_xyz"
    assert result.profile.profile_image_url == "https://img/acme.png"
    assert result.profile.public_metrics.followers_count == 1200
    assert result.profile.public_metrics.tweet_count is None
    assert [(t.id, t.text) for t in result.tweets] == [("7", "gm")]


def test_profile_payload_nested_under_profile_with_recent_tweets():
    result = normalize_profile_payload(
        "@acme",
        {
            "profile": {"name": "Acme", "followers_count": 5},
            "recent_tweets": [{"id": "1", "text": "shipping", "created_at": "2026-01-01"}],
        },
    )
    assert result.profile.username == "acme"
    assert result.profile.public_metrics.followers_count == 5
    assert result.tweets[0].created_at == "2026-01-01"


def test_profile_payload_flat_fields():
    result = normalize_profile_payload("acme", {"username": "Acme", "description": "L2"})
    assert result.profile.username == "Acme"
    assert result.profile.description == "L2"
    assert result.profile.public_metrics is None
    assert result.tweets == []


@pytest.mark.parametrize(
    "payload",
    [
        {"tweets": [{"text": "a", "user": {"screen_name": "x", "name": "X"}}]},
        {"data": [{"text": "a", "user": {"username": "x", "name": "X"}}]},
        {"results": [{"full_text": "a", "user": {"screen_name": "x", "name": "X"}}]},
        [{"text": "a", "user": {"screen_name": "x", "name": "X"}}],
    ],
)
def test_search_payload_shapes(payload):
    posts = normalize_search_payload(payload)
    assert len(posts) == 1
    assert posts[0].text == "a"
    assert posts[0].user.username == "x"
    assert posts[0].user.name == "X"


def test_search_payload_unknown_shape_is_empty():
    assert normalize_search_payload({"unexpected": True}) == []
    assert normalize_search_payload("nope") == []


def test_profile_url_template(make_settings):
    client = SocialApiClient(make_settings(socialapi_twitter_user_path="/v1/twitter/user/:username"))
    assert client.profile_url("ac me") == "https://api.socialapi.me/v1/twitter/user/ac%20me"
    assert SocialApiClient(make_settings()).profile_url("acme") == "https://api.socialapi.me/twitter/user/acme"


@pytest.mark.asyncio
async def test_fetch_profile_requires_key(make_settings):
    with pytest.raises(ProviderUnavailable):
        await SocialApiClient(make_settings()).fetch_profile("acme")


@pytest.mark.asyncio
async def test_fetch_profile_uses_api_key_header(make_settings):
    def handler(method, url, **_kwargs):
        return json_response(method, url, {"user": {"username": "acme"}, "tweets": []})

    client = SocialApiClient(make_settings(socialapi_api_key="sk", socialapi_auth_header="X-API-Key"))
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await client.fetch_profile("@acme")

    headers = FakeClient.calls[0][2]["headers"]
    assert headers["X-API-Key"] == "sk"
    assert "Authorization" not in headers
    assert result.profile.username == "acme"


@pytest.mark.asyncio
async def test_fetch_profiles_maps_failures_to_none(make_settings):
    def handler(method, url, **_kwargs):
        if url.endswith("/broken"):
            return json_response(method, url, {"error": "nope"}, status_code=500)
        return json_response(method, url, {"user": {"username": "acme"}})

    client = SocialApiClient(make_settings(socialapi_api_key="sk"))
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await client.fetch_profiles(["@acme", "broken", "acme"])

    assert set(result) == {"acme", "broken"}
    assert result["broken"] is None
    assert result["acme"].profile.username == "acme"


@pytest.mark.asyncio
async def test_search_sends_query_with_bearer(make_settings):
    def handler(method, url, **kwargs):
        assert url == "https://api.socialapi.me/twitter/search"
        assert kwargs["params"] == {"query": "zk rollups"}
        return json_response(method, url, {"tweets": [{"text": "zk!", "user": {"screen_name": "v"}}]})

    client = SocialApiClient(make_settings(socialapi_api_key="sk", socialapi_auth_header="X-API-Key"))
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        posts = await client.search("zk rollups")

    assert FakeClient.calls[0][2]["headers"]["Authorization"] == "Bearer sk"
    assert posts[0].user.username == "v"


@pytest.mark.asyncio
async def test_public_api_keeps_profile_when_timeline_fails(make_settings):
    def handler(method, url, **_kwargs):
        if "/by/username/" in url:
            return json_response(
                method,
                url,
                {"data": {"id": "9", "username": "acme", "public_metrics": {"followers_count": 10}}},
            )
        return json_response(method, url, {"title": "Forbidden"}, status_code=403)

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await twitter_api.fetch_profile("@acme", settings=make_settings(twitter_bearer_token="tb"))

    assert result.profile.id == "9"
    assert result.profile.public_metrics.followers_count == 10
    assert result.tweets == []


@pytest.mark.asyncio
async def test_public_api_keeps_profile_when_timeline_transport_fails(make_settings):
    def handler(method, url, **_kwargs):
        if "/by/username/" in url:
            return json_response(method, url, {"data": {"id": "9", "username": "acme"}})
        raise httpx.ReadTimeout("timeline stalled", request=httpx.Request(method, url))

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await twitter_api.fetch_profile("acme", settings=make_settings(twitter_bearer_token="tb"))

    assert result.profile.username == "acme"
    assert result.tweets == []


@pytest.mark.asyncio
async def test_public_api_maps_timeline_tweets(make_settings):
    def handler(method, url, **kwargs):
        if "/by/username/" in url:
            return json_response(method, url, {"data": {"id": "9", "username": "acme"}})
        assert kwargs["params"]["max_results"] == "10"
        return json_response(method, url, {"data": [{"id": 1, "text": "gm", "created_at": "2026-01-01"}]})

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await twitter_api.fetch_profile("acme", settings=make_settings(twitter_bearer_token="tb"))

    assert [(t.id, t.text, t.created_at) for t in result.tweets] == [("1", "gm", "2026-01-01")]

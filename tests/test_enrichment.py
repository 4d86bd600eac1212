from __future__ import annotations

from unittest.mock import patch

import pytest

from nexus.errors import ProviderError, ProviderUnavailable
from nexus.tools import github_api, luma_api, proxycurl
from fakes import FakeClient, client_factory, json_response


@pytest.mark.asyncio
async def test_github_missing_org_skips_repos(make_settings):
    def handler(method, url, **_kwargs):
        return json_response(method, url, {"message": "Not Found"}, status_code=404)

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        activity = await github_api.fetch_activity("acme", settings=make_settings())

    assert activity.org is None
    assert activity.repos == []
    assert [call[1] for call in FakeClient.calls] == ["https://api.github.com/orgs/acme"]


@pytest.mark.asyncio
async def test_github_org_with_recent_repos(make_settings):
    def handler(method, url, **kwargs):
        if url.endswith("/repos"):
            assert kwargs["params"] == {"sort": "updated", "per_page": "10"}
            return json_response(method, url, [{"name": "node"}, "junk", {"name": "sdk"}])
        return json_response(method, url, {"login": "acme", "public_repos": 12})

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        activity = await github_api.fetch_activity("acme", settings=make_settings(github_token="gh"))

    assert activity.org["login"] == "acme"
    assert [repo["name"] for repo in activity.repos] == ["node", "sdk"]
    assert FakeClient.calls[0][2]["headers"]["Authorization"] == "Bearer gh"


@pytest.mark.asyncio
async def test_github_repo_failure_keeps_org(make_settings):
    def handler(method, url, **_kwargs):
        if url.endswith("/repos"):
            return json_response(method, url, {"message": "rate limited"}, status_code=403)
        return json_response(method, url, {"login": "acme"})

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        activity = await github_api.fetch_activity("acme", settings=make_settings())

    assert activity.org == {"login": "acme"}
    assert activity.repos == []


@pytest.mark.asyncio
async def test_proxycurl_resolves_then_fetches_profile(make_settings):
    def handler(method, url, **kwargs):
        if url.endswith("/linkedin/company/resolve"):
            assert kwargs["params"] == {"company_domain": "www.acme.xyz"}
            return json_response(method, url, {"url": "https://www.linkedin.com/company/acme"})
        assert kwargs["params"] == {"url": "https://www.linkedin.com/company/acme"}
        return json_response(method, url, {"name": "Acme Inc", "company_size": [11, 50]})

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        profile = await proxycurl.enrich_company_by_domain("www.acme.xyz", settings=make_settings(proxycurl_api_key="pc"))

    assert profile == {"name": "Acme Inc", "company_size": [11, 50]}
    assert len(FakeClient.calls) == 2
    assert FakeClient.calls[0][2]["headers"]["Authorization"] == "Bearer pc"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, payload",
    [(404, {"message": "not found"}), (200, {"url": None}), (200, {})],
)
async def test_proxycurl_unresolved_domain_returns_none(make_settings, status_code, payload):
    def handler(method, url, **_kwargs):
        return json_response(method, url, payload, status_code=status_code)

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        profile = await proxycurl.enrich_company_by_domain("acme.xyz", settings=make_settings(proxycurl_api_key="pc"))

    assert profile is None
    assert len(FakeClient.calls) == 1


@pytest.mark.asyncio
async def test_proxycurl_requires_key(make_settings):
    with pytest.raises(ProviderUnavailable):
        await proxycurl.enrich_company_by_domain("acme.xyz", settings=make_settings())


@pytest.mark.asyncio
async def test_luma_maps_entry_events_and_params(make_settings):
    def handler(method, url, **kwargs):
        assert url == "https://public-api.luma.com/v1/calendar/list-events"
        assert kwargs["params"] == {"after": "2026-06-01T00:00:00.000Z", "pagination_limit": "20"}
        assert kwargs["headers"]["Authorization"] == "Bearer lk"
        return json_response(
            method,
            url,
            {"entries": [{"event": {"id": "evt-1", "name": "Acme Night"}}, {"event": None}, "junk"]},
        )

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        events = await luma_api.list_events(
            after="2026-06-01T00:00:00.000Z",
            limit=20,
            settings=make_settings(luma_api_key="lk"),
        )

    assert events == [{"id": "evt-1", "name": "Acme Night"}]


@pytest.mark.asyncio
async def test_luma_non_ok_raises(make_settings):
    def handler(method, url, **_kwargs):
        return json_response(method, url, {"message": "invalid key"}, status_code=401)

    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        with pytest.raises(ProviderError, match="invalid key"):
            await luma_api.list_events(settings=make_settings(luma_api_key="lk"))

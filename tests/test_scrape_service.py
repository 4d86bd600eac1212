from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from nexus.errors import ProviderError
from nexus.research_core.scrape.service import WebScraper, title_from_markdown
from fakes import FakeClient, client_factory, json_response, text_response


def test_title_from_markdown_reads_first_h1():
    assert title_from_markdown("intro\n# Main Title\n## Sub") == "Main Title"
    assert title_from_markdown("## Only a subheading") == ""


@pytest.mark.asyncio
async def test_reader_used_when_primary_unconfigured(make_settings):
    def handler(method, url, **_kwargs):
        assert method == "GET"
        assert url == "https://r.jina.ai/https://example.com/page"
        return text_response(method, url, "# Example Title\n\nBody text")

    scraper = WebScraper(make_settings())
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await scraper.scrape("example.com/page")

    assert result is not None
    assert result.title == "Example Title"
    assert result.content == "# Example Title\n\nBody text"
    assert FakeClient.calls[0][2]["headers"]["X-Return-Format"] == "markdown"


@pytest.mark.asyncio
async def test_firecrawl_content_and_metadata_title(make_settings):
    def handler(method, url, **kwargs):
        assert url == "https://api.firecrawl.dev/v1/scrape"
        assert kwargs["json"] == {"url": "https://acme.xyz"}
        return json_response(
            method,
            url,
            {"data": {"markdown": "Acme builds rollups", "metadata": {"title": "Acme"}}},
        )

    scraper = WebScraper(make_settings(firecrawl_api_key="fc-key"))
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await scraper.scrape("https://acme.xyz")

    assert result is not None
    assert result.content == "Acme builds rollups"
    assert result.title == "Acme"
    assert len(FakeClient.calls) == 1


@pytest.mark.asyncio
async def test_reader_attempted_after_primary_non_ok(make_settings):
    def handler(method, url, **_kwargs):
        if "firecrawl" in url:
            return json_response(method, url, {"error": "quota"}, status_code=402)
        return text_response(method, url, "plain body")

    scraper = WebScraper(make_settings(firecrawl_api_key="fc-key"))
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await scraper.scrape("https://acme.xyz")

    assert [call[0] for call in FakeClient.calls] == ["POST", "GET"]
    assert result is not None
    assert result.content == "plain body"
    assert result.title == ""


@pytest.mark.asyncio
async def test_empty_primary_content_falls_through(make_settings):
    def handler(method, url, **_kwargs):
        if "firecrawl" in url:
            return json_response(method, url, {"data": {"markdown": "", "content": ""}})
        return text_response(method, url, "# From Reader")

    scraper = WebScraper(make_settings(firecrawl_api_key="fc-key"))
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        result = await scraper.scrape("acme.xyz")

    assert result is not None
    assert result.title == "From Reader"


@pytest.mark.asyncio
async def test_both_providers_failing_returns_none(make_settings, monkeypatch):
    scraper = WebScraper(make_settings(firecrawl_api_key="fc-key"))
    monkeypatch.setattr(
        scraper, "_scrape_with_firecrawl", AsyncMock(side_effect=ProviderError("firecrawl", "down"))
    )
    monkeypatch.setattr(scraper, "_scrape_with_jina_reader", AsyncMock(side_effect=RuntimeError("reader down")))

    assert await scraper.scrape("https://acme.xyz") is None


@pytest.mark.asyncio
async def test_reader_key_sent_as_bearer(make_settings):
    def handler(method, url, **_kwargs):
        return text_response(method, url, "body")

    scraper = WebScraper(make_settings(jina_api_key="jina-key"))
    with patch("nexus.tools.fetch.httpx.AsyncClient", client_factory(handler)):
        await scraper.scrape("https://acme.xyz")

    assert FakeClient.calls[0][2]["headers"]["Authorization"] == "Bearer jina-key"

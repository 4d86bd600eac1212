from __future__ import annotations

import re
from typing import Awaitable, Callable

from loguru import logger

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderError, ProviderUnavailable, ResearchError
from nexus.models.research import ScrapeResult
from nexus.tools import fetch
from nexus.tools.web_utils import ensure_scheme

HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)

Provider = Callable[[str], Awaitable[ScrapeResult]]


def title_from_markdown(text: str) -> str:
    match = HEADING_RE.search(text)
    return match.group(1).strip() if match else ""


class WebScraper:
    """Page extraction with a two-tier provider chain.

    Firecrawl is tried first when a key is configured; the Jina reader is the
    fallback for every Firecrawl failure mode. ``scrape`` never raises: a page
    that neither provider can deliver comes back as ``None``.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings
        self.timeout_ms = int(self.settings.scrape_timeout_ms)

    def providers(self) -> list[tuple[str, Provider]]:
        return [
            ("firecrawl", self._scrape_with_firecrawl),
            ("jina_reader", self._scrape_with_jina_reader),
        ]

    async def scrape(self, url: str) -> ScrapeResult | None:
        target = ensure_scheme(url)
        for name, provider in self.providers():
            try:
                return await provider(target)
            except ProviderUnavailable:
                continue
            except ResearchError as exc:
                logger.warning(f"[website] {name} failed for {target}: {exc}")
            except Exception as exc:
                logger.warning(f"[website] {name} error for {target}: {exc!r}")
        return None

    async def _scrape_with_firecrawl(self, url: str) -> ScrapeResult:
        api_key = self.settings.firecrawl_api_key.strip()
        if not api_key:
            raise ProviderUnavailable("firecrawl", "FIRECRAWL_API_KEY")

        endpoint = self.settings.firecrawl_base_url.rstrip("/") + "/v1/scrape"
        response = await fetch.post(
            endpoint,
            provider="firecrawl",
            timeout_ms=self.timeout_ms,
            json={"url": url},
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
        )
        fetch.ensure_ok(response, "firecrawl")
        payload = fetch.json_body(response, "firecrawl")

        body = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(body, dict):
            raise ProviderError("firecrawl", "Firecrawl response missing data")
        content = str(body.get("markdown") or body.get("content") or "")
        if not content:
            raise ProviderError("firecrawl", "Firecrawl returned empty content")
        metadata = body.get("metadata")
        title = ""
        if isinstance(metadata, dict):
            title = str(metadata.get("title") or "")
        return ScrapeResult(content=content, title=title)

    async def _scrape_with_jina_reader(self, url: str) -> ScrapeResult:
        base = self.settings.jina_reader_base_url.strip()
        if not base:
            raise ProviderUnavailable("jina_reader", "JINA_READER_BASE_URL")
        if "{url}" in base:
            target = base.format(url=url)
        else:
            target = base.rstrip("/") + "/" + url

        headers = {"X-Return-Format": "markdown"}
        if self.settings.jina_api_key:
            headers["Authorization"] = f"Bearer {self.settings.jina_api_key}"

        response = await fetch.get(
            target,
            provider="jina_reader",
            timeout_ms=self.timeout_ms,
            headers=headers,
        )
        fetch.ensure_ok(response, "jina_reader")
        text = response.text
        if not text:
            raise ProviderError("jina_reader", "Jina reader returned empty body")
        return ScrapeResult(content=text, title=title_from_markdown(text))

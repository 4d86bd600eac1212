from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable

from loguru import logger

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderUnavailable
from nexus.models.research import ScrapedEvent, ScrapeResult, SearchResult
from nexus.research_core.events.extract import (
    extract_description,
    extract_event_links,
    extract_title,
    is_event_host_url,
    is_event_page_url,
    parse_event_date,
    parse_iso,
    parse_recent_event_date,
    placeholder_title,
    slug_from_name,
    slug_from_url,
)
from nexus.research_core.scrape.service import WebScraper
from nexus.tools import search_provider
from nexus.tools.web_utils import url_key

COMPANY_EVENT_QUERIES = (
    '"{name}" hackathon site:lu.ma',
    '"{name}" event OR meetup site:lu.ma',
    "{name} lu.ma events",
)
MAX_TITLE_CHARS = 500
MAX_DESCRIPTION_CHARS = 2000

SearchFn = Callable[[str], Awaitable[list[SearchResult]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def dedupe_events(events: Iterable[ScrapedEvent]) -> list[ScrapedEvent]:
    """Keep the first event per normalized URL."""
    seen: set[str] = set()
    unique: list[ScrapedEvent] = []
    for event in events:
        key = url_key(event.url)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique


def sort_events(events: list[ScrapedEvent]) -> list[ScrapedEvent]:
    """Newest first; undated events last, in their original order."""
    dated = [(parse_iso(e.start_at), e) for e in events if e.start_at]
    dated_valid = [(m, e) for m, e in dated if m is not None]
    dated_valid.sort(key=lambda pair: pair[0], reverse=True)
    dated_ids = {id(e) for _, e in dated_valid}
    return [e for _, e in dated_valid] + [e for e in events if id(e) not in dated_ids]


def luma_urls_for_company(company_name: str, *, settings: Settings | None = None) -> list[str] | None:
    """Calendar URL guessed from the company name, e.g. ``Polygon Labs`` -> ``https://lu.ma/polygonlabs``."""
    cfg = settings or default_settings
    slug = slug_from_name(company_name)
    if not slug:
        return None
    base = cfg.luma_events_base_url.rstrip("/") + "/"
    return [f"{base}{slug}"]


class EventScraper:
    """Discovers calendar events for a company by searching and scraping event pages."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        scraper: WebScraper | None = None,
        search: SearchFn | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.settings = settings or default_settings
        self.scraper = scraper or WebScraper(self.settings)
        self._search = search
        self._now = now or _utcnow
        self._max_parallel = max(int(self.settings.event_scrape_max_parallel), 1)

    async def _search_web(self, query: str) -> list[SearchResult]:
        if self._search is not None:
            return await self._search(query)
        return await search_provider.search_web(query, settings=self.settings)

    async def _scrape_all(self, urls: list[str]) -> list[ScrapeResult | None | BaseException]:
        semaphore = asyncio.Semaphore(self._max_parallel)

        async def run_one(url: str) -> ScrapeResult | None:
            async with semaphore:
                return await self.scraper.scrape(url)

        return await asyncio.gather(*(run_one(u) for u in urls), return_exceptions=True)

    async def _find_event_hits(self, name: str) -> list[SearchResult]:
        queries = [q.format(name=name) for q in COMPANY_EVENT_QUERIES]
        settled = await asyncio.gather(
            *(self._search_web(q) for q in queries),
            return_exceptions=True,
        )
        hits: list[SearchResult] = []
        seen: set[str] = set()
        for query, outcome in zip(queries, settled):
            if isinstance(outcome, ProviderUnavailable):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning(f"[luma-scraper] Search failed for '{query}': {outcome}")
                continue
            for hit in outcome:
                key = url_key(hit.link)
                if not is_event_page_url(hit.link) or key in seen:
                    continue
                seen.add(key)
                hits.append(hit)
        return hits

    async def scrape_events_by_company(self, company_name: str) -> list[ScrapedEvent]:
        """Events from the last 12 months that search associates with the company.

        Events dated outside the window are dropped; undated events are kept.
        """
        name = company_name.strip()
        if not name:
            return []

        try:
            hits = await self._find_event_hits(name)
        except ProviderUnavailable:
            return []
        if not hits:
            return []

        pages = await self._scrape_all([hit.link for hit in hits])
        now = self._now()
        events: list[ScrapedEvent] = []
        for hit, page in zip(hits, pages):
            if isinstance(page, BaseException):
                logger.warning(f"[luma-scraper] Failed to fetch {hit.link}: {page}")
                events.append(ScrapedEvent(url=hit.link, title=hit.title, snippet=hit.snippet or None))
                continue

            content = page.content if page else ""
            parsed = parse_recent_event_date(content, now)
            if parsed is None:
                continue
            events.append(
                ScrapedEvent(
                    url=hit.link,
                    title=extract_title(content, hit.title),
                    date=parsed.date,
                    start_at=parsed.start_at,
                    description=extract_description(content),
                    snippet=hit.snippet or None,
                )
            )
        return sort_events(events)

    async def _expand_listing_pages(self, listing_urls: list[str]) -> list[str]:
        seen = {url_key(u) for u in listing_urls}
        event_urls: list[str] = []
        pages = await self._scrape_all(listing_urls)
        for link, page in zip(listing_urls, pages):
            if isinstance(page, BaseException) or page is None:
                event_urls.append(link)
                continue
            sub_links = extract_event_links(page.content, link)
            if not sub_links:
                event_urls.append(link)
                continue
            for sub in sub_links:
                key = url_key(sub)
                if key not in seen:
                    seen.add(key)
                    event_urls.append(sub)
        return event_urls

    async def scrape_events_from_urls(self, company_name: str, urls: list[str]) -> list[ScrapedEvent]:
        """Events behind explicit calendar/profile/event URLs.

        Listing pages are expanded into the event links they contain; a page
        without links is treated as a single event. Any parseable date is
        accepted since the caller already chose the URLs.
        """
        if not company_name.strip():
            return []

        listing_urls: list[str] = []
        seen: set[str] = set()
        for raw in urls:
            link = raw.strip()
            if not link or not is_event_host_url(link):
                continue
            key = url_key(link)
            if key in seen:
                continue
            seen.add(key)
            listing_urls.append(link)
        if not listing_urls:
            return []

        event_urls = await self._expand_listing_pages(listing_urls)
        unique_urls: list[str] = []
        seen_events: set[str] = set()
        for link in event_urls:
            key = url_key(link)
            if key in seen_events:
                continue
            seen_events.add(key)
            unique_urls.append(link)

        pages = await self._scrape_all(unique_urls)
        events: list[ScrapedEvent] = []
        for link, page in zip(unique_urls, pages):
            if isinstance(page, BaseException):
                logger.warning(f"[luma-scraper] Failed to fetch {link}: {page}")
                events.append(ScrapedEvent(url=link, title=slug_from_url(link) or "Event"))
                continue

            content = page.content if page else ""
            parsed = parse_event_date(content)
            fallback_title = (page.title if page else "") or slug_from_url(link) or "Event"
            description = extract_description(content)
            events.append(
                ScrapedEvent(
                    url=link,
                    title=extract_title(content, fallback_title)[:MAX_TITLE_CHARS],
                    date=parsed.date,
                    start_at=parsed.start_at,
                    description=description[:MAX_DESCRIPTION_CHARS] if description else None,
                )
            )
        return sort_events(events)

    async def events_for_company(self, company_name: str) -> list[ScrapedEvent]:
        """Scrape the company's guessed calendar; placeholder rows when nothing parses."""
        urls = luma_urls_for_company(company_name, settings=self.settings)
        if not urls:
            return []
        try:
            events = await self.scrape_events_from_urls(company_name, urls)
        except Exception as exc:
            logger.warning(f"[luma-scraper] Calendar scrape failed for {company_name}: {exc!r}")
            events = []
        if not events:
            events = [ScrapedEvent(url=url, title=placeholder_title(url)) for url in urls]
        return dedupe_events(e for e in events if e.url.strip())

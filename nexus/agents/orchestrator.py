from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, TypeVar

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderUnavailable
from nexus.models.research import GitHubActivity, ResearchInput, ResearchResult
from nexus.research_core.events.extract import to_iso_z
from nexus.research_core.events.service import EventScraper
from nexus.research_core.scrape.service import WebScraper
from nexus.services import logger as log_service
from nexus.tools import github_api, luma_api, proxycurl, search_provider, twitter_api
from nexus.tools.social_api import SocialApiClient
from nexus.tools.web_utils import domain_from_website, org_login_from_domain

T = TypeVar("T")


async def _resolved(value: T) -> T:
    return value


class ResearchOrchestrator:
    """Aggregates everything known about one company from independent sources.

    Flow:
      1. Primary lookups in parallel: website scrape, company web search,
         social profile.
      2. If enrichment is on, in parallel: company profile by domain, code-host
         org + repos, upcoming calendar events, scraped past events.

    Every source degrades to its empty value on its own. Failures are collected
    in ``errors`` as ``"<Source>: <message>"``; a source with no key configured
    is skipped silently.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        scraper: WebScraper | None = None,
        event_scraper: EventScraper | None = None,
        social_client: SocialApiClient | None = None,
    ):
        self.settings = settings or default_settings
        self.scraper = scraper or WebScraper(self.settings)
        self.event_scraper = event_scraper or EventScraper(self.settings, scraper=self.scraper)
        self.social_client = social_client or SocialApiClient(self.settings)

    @staticmethod
    def _settle(subject: str, label: str, outcome: Any, default: Any, errors: list[str]) -> Any:
        if isinstance(outcome, ProviderUnavailable):
            log_service.log_source_result(subject, label, "skipped", str(outcome))
            return default
        if isinstance(outcome, BaseException):
            log_service.log_source_result(subject, label, "failed", str(outcome))
            errors.append(f"{label}: {outcome}")
            return default
        log_service.log_source_result(subject, label, "ok")
        return default if outcome is None else outcome

    def _twitter_lookup(self, handle: str) -> Awaitable[Any]:
        if self.settings.has_social_api_key:
            return self.social_client.fetch_profile(handle)
        return twitter_api.fetch_profile(handle, settings=self.settings)

    async def research_company(self, research_input: ResearchInput) -> ResearchResult:
        name = research_input.name
        website = research_input.website
        handle = research_input.twitter_handle
        result = ResearchResult()
        errors = result.errors

        log_service.log_research_step(
            name,
            "research_company",
            "started",
            {"website": website, "twitter": handle, "enrich": research_input.enrich},
        )

        website_out, google_out, twitter_out = await asyncio.gather(
            self.scraper.scrape(website) if website else _resolved(None),
            search_provider.search_company_info(name, settings=self.settings),
            self._twitter_lookup(handle) if handle else _resolved(None),
            return_exceptions=True,
        )
        result.website = self._settle(name, "Website", website_out, None, errors)
        result.google = self._settle(name, "Google", google_out, [], errors)
        result.twitter = self._settle(name, "Twitter", twitter_out, None, errors)

        if research_input.enrich:
            await self._enrich(name, website, result)

        log_service.log_research_step(
            name,
            "research_company",
            "completed",
            {
                "website": result.website is not None,
                "google": len(result.google),
                "twitter": result.twitter is not None,
                "luma": len(result.luma),
                "luma_scraped": len(result.luma_scraped),
                "errors": len(errors),
            },
        )
        return result

    async def _enrich(self, name: str, website: str | None, result: ResearchResult) -> None:
        domain = domain_from_website(website) if website else ""
        login = org_login_from_domain(domain) if domain else ""
        now = to_iso_z(datetime.now(timezone.utc))

        proxycurl_out, github_out, luma_out, scraped_out = await asyncio.gather(
            proxycurl.enrich_company_by_domain(domain, settings=self.settings) if domain else _resolved(None),
            github_api.fetch_activity(login, settings=self.settings) if login else _resolved(GitHubActivity()),
            luma_api.list_events(after=now, limit=self.settings.calendar_events_limit, settings=self.settings),
            self.event_scraper.scrape_events_by_company(name),
            return_exceptions=True,
        )
        errors = result.errors
        result.proxycurl = self._settle(name, "Proxycurl", proxycurl_out, None, errors)
        result.github = self._settle(name, "GitHub", github_out, GitHubActivity(), errors)
        result.luma = self._settle(name, "Luma", luma_out, [], errors)
        result.luma_scraped = self._settle(name, "Luma scraper", scraped_out, [], errors)


async def research_company(
    research_input: ResearchInput,
    settings: Settings | None = None,
) -> ResearchResult:
    return await ResearchOrchestrator(settings).research_company(research_input)

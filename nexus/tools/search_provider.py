from __future__ import annotations

import asyncio
from dataclasses import dataclass

from loguru import logger

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderUnavailable
from nexus.models.research import SearchResult
from nexus.tools import serpapi_search, tavily_search
from nexus.tools.web_utils import dedupe_by_link

COMPANY_QUERY_TEMPLATES = (
    "{name} company overview funding",
    "{name} web3 sponsorship event partnership",
)


@dataclass
class SearchResponse:
    results: list[SearchResult]
    provider: str
    fallback_from: str | None = None
    fallback_reason: str | None = None


def _tavily_enabled(cfg: Settings) -> bool:
    return bool(cfg.search_fallback_to_tavily and cfg.tavily_api_key)


async def search(
    query: str,
    *,
    max_results: int | None = None,
    settings: Settings | None = None,
) -> SearchResponse:
    """Web search through SerpAPI, falling back to Tavily when it is configured.

    Raises ``ProviderUnavailable`` when neither provider has a key, and the
    SerpAPI error when it fails with no fallback available.
    """
    cfg = settings or default_settings
    use_fallback = _tavily_enabled(cfg)

    if not cfg.serpapi_api_key:
        if not use_fallback:
            raise ProviderUnavailable("search", "SERPAPI_API_KEY")
        results = await tavily_search.search(query, max_results=max_results, settings=cfg)
        return SearchResponse(
            results=results,
            provider="tavily",
            fallback_from="serpapi",
            fallback_reason="serpapi not configured",
        )

    try:
        results = await serpapi_search.search(query, max_results=max_results, settings=cfg)
    except Exception as e:
        if not use_fallback:
            raise
        logger.warning(f"[search] SerpAPI failed, falling back to Tavily: {e}")
        fallback_results = await tavily_search.search(query, max_results=max_results, settings=cfg)
        return SearchResponse(
            results=fallback_results,
            provider="tavily",
            fallback_from="serpapi",
            fallback_reason=str(e),
        )

    if results or not use_fallback:
        return SearchResponse(results=results, provider="serpapi")

    fallback_results = await tavily_search.search(query, max_results=max_results, settings=cfg)
    return SearchResponse(
        results=fallback_results,
        provider="tavily",
        fallback_from="serpapi",
        fallback_reason="serpapi returned zero results",
    )


async def search_web(query: str, *, settings: Settings | None = None) -> list[SearchResult]:
    response = await search(query, settings=settings)
    return response.results


async def search_company_info(name: str, *, settings: Settings | None = None) -> list[SearchResult]:
    """Overview and sponsorship searches for a company, merged by link.

    One failing query does not discard the other's hits; the error is only
    raised when every query failed.
    """
    queries = [template.format(name=name) for template in COMPANY_QUERY_TEMPLATES]
    settled = await asyncio.gather(
        *(search_web(q, settings=settings) for q in queries),
        return_exceptions=True,
    )

    combined: list[SearchResult] = []
    failures: list[BaseException] = []
    for query, outcome in zip(queries, settled):
        if isinstance(outcome, BaseException):
            failures.append(outcome)
            if not isinstance(outcome, ProviderUnavailable):
                logger.warning(f"[google] Search failed for '{query}': {outcome}")
            continue
        combined.extend(outcome)

    if failures and len(failures) == len(queries):
        raise failures[0]
    return dedupe_by_link(combined)

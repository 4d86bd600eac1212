from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderError, ProviderUnavailable
from nexus.models.research import SearchResult
from nexus.tools.fetch import fetch_bounded


async def search(
    query: str,
    *,
    max_results: int | None = None,
    search_depth: str = "basic",
    time_range: str | None = None,
    settings: Settings | None = None,
) -> list[SearchResult]:
    """Execute a Tavily web search and map it onto the organic-result shape."""
    cfg = settings or default_settings
    if not cfg.tavily_api_key:
        raise ProviderUnavailable("tavily", "TAVILY_API_KEY")

    client = AsyncTavilyClient(api_key=cfg.tavily_api_key)

    kwargs: dict[str, Any] = {
        "query": query,
        "search_depth": search_depth,
        "max_results": max_results or cfg.search_max_results,
    }
    if time_range:
        kwargs["time_range"] = time_range

    try:
        response = await fetch_bounded(
            client.search(**kwargs),
            cfg.lookup_timeout_ms,
            provider="tavily",
        )
    except ProviderError:
        raise
    except Exception as exc:
        raise ProviderError("tavily", f"tavily search failed: {exc}") from exc

    return [
        SearchResult(
            title=str(r.get("title") or ""),
            link=str(r.get("url") or ""),
            snippet=str(r.get("content") or ""),
        )
        for r in response.get("results", [])
        if isinstance(r, dict)
    ]

from __future__ import annotations

from typing import Any

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderError, ProviderUnavailable
from nexus.models.research import SearchResult
from nexus.tools import fetch


async def search(
    query: str,
    *,
    max_results: int | None = None,
    settings: Settings | None = None,
) -> list[SearchResult]:
    """Execute a SerpAPI Google search and normalize the organic results."""
    cfg = settings or default_settings
    if not cfg.serpapi_api_key:
        raise ProviderUnavailable("serpapi", "SERPAPI_API_KEY")

    params: dict[str, Any] = {
        "q": query,
        "api_key": cfg.serpapi_api_key,
        "num": str(max_results or cfg.search_max_results),
    }
    response = await fetch.get(
        cfg.serpapi_base_url.rstrip("/") + "/search",
        provider="serpapi",
        timeout_ms=cfg.lookup_timeout_ms,
        params=params,
    )
    fetch.ensure_ok(response, "serpapi")
    payload = fetch.json_body(response, "serpapi")
    if not isinstance(payload, dict):
        raise ProviderError("serpapi", "SerpAPI response is not an object")

    organic = payload.get("organic_results") or []
    return [
        SearchResult(
            title=str(item.get("title") or ""),
            link=str(item.get("link") or ""),
            snippet=str(item.get("snippet") or ""),
        )
        for item in organic
        if isinstance(item, dict)
    ]

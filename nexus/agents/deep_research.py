"""Iterative web + social research with LLM analysis and follow-up rounds.

Round 1 searches the query on both channels and asks the model for an
analysis plus follow-up queries. When follow-ups come back and more than one
round is allowed, round 2 searches every follow-up concurrently and asks the
model to synthesize everything gathered. The loop never runs past round 2.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable

from loguru import logger

from nexus.config import Settings, settings as default_settings
from nexus.errors import LLMParseError
from nexus.llm_client import ChatCompletions, parse_json_object
from nexus.models.research import (
    DeepResearchResult,
    SearchResult,
    SocialPost,
    Source,
    TwitterInsights,
    WebInsights,
)
from nexus.services import logger as log_service
from nexus.services.prompt_store import render_prompt
from nexus.tools import search_provider
from nexus.tools.social_api import SocialApiClient
from nexus.tools.web_utils import dedupe_by_link, dedupe_posts

MIN_ROUNDS = 1
MAX_ROUNDS = 3
MAX_FOLLOW_UPS = 3
ANALYSIS_WEB_LIMIT = 10
ANALYSIS_SOCIAL_LIMIT = 20
SYNTHESIS_WEB_LIMIT = 8
SYNTHESIS_SOCIAL_LIMIT = 15
RESULT_TWEETS_LIMIT = 20
RESULT_WEB_LIMIT = 15

WebSearchFn = Callable[[str], Awaitable[list[SearchResult]]]
SocialSearchFn = Callable[[str], Awaitable[list[SocialPost]]]


def clamp_rounds(max_rounds: int | None, default: int) -> int:
    value = default if max_rounds is None else max_rounds
    return max(MIN_ROUNDS, min(MAX_ROUNDS, int(value)))


def safe_parse(raw_text: str) -> dict[str, Any]:
    """Parse a model reply; unparseable text becomes the summary."""
    try:
        return parse_json_object(raw_text)
    except LLMParseError:
        return {"summary": raw_text, "keyFindings": [], "followUpQueries": []}


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def follow_up_queries(parsed: dict[str, Any]) -> list[str]:
    queries = _string_list(parsed.get("followUpQueries")) or []
    return [q.strip() for q in queries if q.strip()][:MAX_FOLLOW_UPS]


def build_sources(web: list[SearchResult], social: list[SocialPost]) -> list[Source]:
    """Web sources by link, then one source per social author profile."""
    sources: list[Source] = []
    seen: set[str] = set()
    for result in dedupe_by_link(web):
        if result.link and result.link not in seen:
            seen.add(result.link)
            sources.append(Source(title=result.title, url=result.link, type="web"))
    for post in social:
        username = post.user.username
        if not username:
            continue
        url = f"https://twitter.com/{username}"
        if url not in seen:
            seen.add(url)
            sources.append(Source(title=f"@{username}", url=url, type="twitter"))
    return sources


class DeepResearcher:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        llm: ChatCompletions | None = None,
        web_search: WebSearchFn | None = None,
        social_search: SocialSearchFn | None = None,
    ):
        self.settings = settings or default_settings
        self.llm = llm or ChatCompletions(self.settings)
        self._web_search = web_search
        self._social_search = social_search

    async def _search_web(self, query: str) -> list[SearchResult]:
        if self._web_search is not None:
            return await self._web_search(query)
        return await search_provider.search_web(query, settings=self.settings)

    async def _search_social(self, query: str) -> list[SocialPost]:
        if self._social_search is not None:
            return await self._social_search(query)
        return await SocialApiClient(self.settings).search(query)

    async def _gather_channels(self, query: str) -> tuple[list[SearchResult], list[SocialPost]]:
        web, social = await asyncio.gather(
            self._search_web(query),
            self._search_social(query),
            return_exceptions=True,
        )
        if isinstance(web, BaseException):
            logger.warning(f"[deep-research] Web search failed for '{query}': {web}")
            web = []
        if isinstance(social, BaseException):
            logger.warning(f"[deep-research] Social search failed for '{query}': {social}")
            social = []
        return web, social

    async def _ask(self, system_key: str, user_key: str, query: str, data: dict[str, Any]) -> str:
        messages = [
            {"role": "system", "content": render_prompt(system_key)},
            {"role": "user", "content": render_prompt(user_key, query=query, data=json.dumps(data))},
        ]
        try:
            return await self.llm.complete(messages, caller=f"deep_research.{user_key.rsplit('.', 1)[-1]}")
        except Exception as exc:
            logger.warning(f"[deep-research] LLM call failed: {exc}")
            return ""

    async def run(self, query: str, max_rounds: int | None = None) -> DeepResearchResult:
        query = (query or "").strip()
        if not query:
            return DeepResearchResult()
        rounds_allowed = clamp_rounds(max_rounds, self.settings.deep_research_max_rounds)

        log_service.log_research_step(query, "deep_research", "round_1", {"max_rounds": rounds_allowed})
        web1, social1 = await self._gather_channels(query)
        all_web = list(web1)
        all_social = list(social1)

        round1_raw = await self._ask(
            "deep_research.analysis_system",
            "deep_research.analysis_user",
            query,
            {
                "query": query,
                "webResults": [r.to_dict() for r in web1[:ANALYSIS_WEB_LIMIT]],
                "twitterResults": [p.to_dict() for p in social1[:ANALYSIS_SOCIAL_LIMIT]],
            },
        )
        round1 = safe_parse(round1_raw)
        follow_ups = follow_up_queries(round1)

        final = round1
        rounds = 1
        if follow_ups and rounds_allowed > 1:
            log_service.log_research_step(query, "deep_research", "round_2", {"follow_ups": follow_ups})
            per_query = await asyncio.gather(*(self._gather_channels(fq) for fq in follow_ups))
            for web, social in per_query:
                all_web.extend(web)
                all_social.extend(social)

            synthesis_raw = await self._ask(
                "deep_research.synthesis_system",
                "deep_research.synthesis_user",
                query,
                {
                    "originalQuery": query,
                    "round1Analysis": round1,
                    "followUpData": [
                        {
                            "query": fq,
                            "webResults": [r.to_dict() for r in web[:SYNTHESIS_WEB_LIMIT]],
                            "twitterResults": [p.to_dict() for p in social[:SYNTHESIS_SOCIAL_LIMIT]],
                        }
                        for fq, (web, social) in zip(follow_ups, per_query)
                    ],
                },
            )
            final = safe_parse(synthesis_raw)
            rounds = 2

        def pick_text(key: str) -> str:
            value = _text(final.get(key))
            return value if value is not None else (_text(round1.get(key)) or "")

        key_findings = _string_list(final.get("keyFindings"))
        if key_findings is None:
            key_findings = _string_list(round1.get("keyFindings")) or []

        result = DeepResearchResult(
            summary=pick_text("summary"),
            key_findings=key_findings,
            twitter_insights=TwitterInsights(
                summary=pick_text("twitterInsights"),
                tweets=dedupe_posts(all_social)[:RESULT_TWEETS_LIMIT],
            ),
            web_results=WebInsights(
                summary=pick_text("webInsights"),
                results=dedupe_by_link(all_web)[:RESULT_WEB_LIMIT],
            ),
            follow_up_queries=follow_ups,
            sources=build_sources(all_web, all_social),
            rounds=rounds,
        )
        log_service.log_research_step(
            query,
            "deep_research",
            "completed",
            {"rounds": rounds, "sources": len(result.sources)},
        )
        return result


async def deep_research(
    query: str,
    max_rounds: int | None = None,
    settings: Settings | None = None,
) -> DeepResearchResult:
    return await DeepResearcher(settings).run(query, max_rounds)

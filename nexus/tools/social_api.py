"""SocialAPI (api.socialapi.me) adapter for Twitter/X profiles and keyword search.

Responses vary between plans and API versions, so everything past the HTTP
call goes through the normalizers below. Accepted shapes:

profile payloads
    ``{"user": {...}, "tweets": [...]}``, ``{"profile": {...}, "recent_tweets": [...]}``,
    ``{"data": {...}}`` or the user fields at the top level. Usernames come from
    ``username`` or ``screen_name``, avatars from ``profile_image_url`` or ``avatar``,
    metrics from ``public_metrics``, ``metrics`` or a bare ``followers_count``.

search payloads
    ``{"tweets": [...]}``, ``{"data": [...]}``, ``{"results": [...]}`` or a bare list.
    Post text comes from ``text`` or ``full_text``.

Nothing provider-shaped leaves this module.
"""
from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import quote

from loguru import logger

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderError, ProviderUnavailable
from nexus.models.research import (
    PublicMetrics,
    SocialPost,
    SocialUser,
    Tweet,
    TwitterProfile,
    TwitterResult,
)
from nexus.tools import fetch

PROVIDER = "social-api"


def _clean_handle(handle: str) -> str:
    return handle.strip().lstrip("@").strip()


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _first_dict(*candidates: Any) -> dict[str, Any] | None:
    for candidate in candidates:
        if isinstance(candidate, dict):
            return candidate
    return None


def _first_list(*candidates: Any) -> list[Any]:
    for candidate in candidates:
        if isinstance(candidate, list):
            return candidate
    return []


def _normalize_metrics(user: dict[str, Any]) -> PublicMetrics | None:
    metrics = _first_dict(user.get("public_metrics"), user.get("metrics"))
    if metrics is not None:
        def as_int(key: str) -> int | None:
            value = metrics.get(key)
            return value if isinstance(value, int) and not isinstance(value, bool) else None

        return PublicMetrics(
            followers_count=as_int("followers_count"),
            following_count=as_int("following_count"),
            tweet_count=as_int("tweet_count"),
        )
    followers = user.get("followers_count")
    if isinstance(followers, int) and not isinstance(followers, bool):
        return PublicMetrics(followers_count=followers)
    return None


def normalize_profile_payload(handle: str, data: Any) -> TwitterResult:
    """Map any accepted profile payload onto ``TwitterResult``."""
    obj = data if isinstance(data, dict) else {}
    user = _first_dict(obj.get("user"), obj.get("profile"), obj.get("data")) or obj

    username = _str_or_none(user.get("username")) or _str_or_none(user.get("screen_name"))
    profile = TwitterProfile(
        id=_str_or_none(user.get("id")),
        name=_str_or_none(user.get("name")),
        username=username or _clean_handle(handle),
        description=_str_or_none(user.get("description")),
        profile_image_url=_str_or_none(user.get("profile_image_url")) or _str_or_none(user.get("avatar")),
        public_metrics=_normalize_metrics(user),
    )

    tweets: list[Tweet] = []
    for raw in _first_list(obj.get("tweets"), obj.get("data"), obj.get("recent_tweets")):
        if not isinstance(raw, dict):
            continue
        raw_id = raw.get("id")
        tweet_id = raw_id if isinstance(raw_id, str) else ("" if raw_id is None else str(raw_id))
        text = _str_or_none(raw.get("text")) or _str_or_none(raw.get("full_text")) or ""
        if not (tweet_id or text):
            continue
        tweets.append(Tweet(id=tweet_id, text=text, created_at=_str_or_none(raw.get("created_at"))))

    return TwitterResult(profile=profile, tweets=tweets)


def normalize_search_payload(data: Any) -> list[SocialPost]:
    """Map any accepted search payload onto ``SocialPost`` items."""
    if isinstance(data, list):
        raw_posts: list[Any] = data
    elif isinstance(data, dict):
        raw_posts = _first_list(data.get("tweets"), data.get("data"), data.get("results"))
    else:
        raw_posts = []

    posts: list[SocialPost] = []
    for raw in raw_posts:
        if not isinstance(raw, dict):
            continue
        user = raw.get("user") if isinstance(raw.get("user"), dict) else {}
        posts.append(
            SocialPost(
                text=_str_or_none(raw.get("text")) or _str_or_none(raw.get("full_text")) or "",
                user=SocialUser(
                    name=_str_or_none(user.get("name")) or "",
                    username=_str_or_none(user.get("screen_name"))
                    or _str_or_none(user.get("username"))
                    or "",
                ),
                created_at=_str_or_none(raw.get("created_at")),
            )
        )
    return posts


class SocialApiClient:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings
        self.timeout_ms = int(self.settings.social_timeout_ms)

    @property
    def api_key(self) -> str:
        return self.settings.socialapi_api_key.strip()

    @property
    def base_url(self) -> str:
        return (self.settings.socialapi_base_url.strip() or "https://api.socialapi.me").rstrip("/")

    def _headers(self, *, allow_api_key_header: bool = True) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if allow_api_key_header and self.settings.socialapi_auth_header == "X-API-Key":
            headers["X-API-Key"] = self.api_key
        else:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def profile_url(self, handle: str) -> str:
        encoded = quote(handle, safe="")
        template = self.settings.socialapi_twitter_user_path.strip() or f"/twitter/user/{encoded}"
        path = template.replace(":username", encoded)
        if path.startswith("http"):
            return path
        return self.base_url + (path if path.startswith("/") else f"/{path}")

    async def fetch_profile(self, handle: str) -> TwitterResult | None:
        """Fetch one profile plus recent posts. ``None`` for a blank handle."""
        if not self.api_key:
            raise ProviderUnavailable(PROVIDER, "SOCIALAPI_API_KEY")
        clean = _clean_handle(handle)
        if not clean:
            return None

        response = await fetch.get(
            self.profile_url(clean),
            provider=PROVIDER,
            timeout_ms=self.timeout_ms,
            headers=self._headers(),
        )
        fetch.ensure_ok(response, PROVIDER)
        return normalize_profile_payload(clean, fetch.json_body(response, PROVIDER))

    async def fetch_profiles(self, handles: list[str]) -> dict[str, TwitterResult | None]:
        """Fetch several profiles concurrently; failed or unconfigured lookups map to ``None``."""
        if not self.api_key:
            return {_clean_handle(h): None for h in handles}

        unique = list(dict.fromkeys(h for h in (_clean_handle(x) for x in handles) if h))
        settled = await asyncio.gather(
            *(self.fetch_profile(h) for h in unique),
            return_exceptions=True,
        )
        result: dict[str, TwitterResult | None] = {}
        for handle, outcome in zip(unique, settled):
            if isinstance(outcome, BaseException):
                logger.error(f"[social-api] Profile fetch failed for @{handle}: {outcome}")
                result[handle] = None
            else:
                result[handle] = outcome
        return result

    async def search(self, query: str) -> list[SocialPost]:
        """Keyword search over posts (not a profile lookup)."""
        if not self.api_key:
            raise ProviderUnavailable(PROVIDER, "SOCIALAPI_API_KEY")

        response = await fetch.get(
            f"{self.base_url}/twitter/search",
            provider=PROVIDER,
            timeout_ms=self.timeout_ms,
            params={"query": query},
            headers=self._headers(allow_api_key_header=False),
        )
        fetch.ensure_ok(response, PROVIDER)
        payload = fetch.json_body(response, PROVIDER)
        if not isinstance(payload, (dict, list)):
            raise ProviderError(PROVIDER, "Twitter search returned an unexpected body")
        return normalize_search_payload(payload)

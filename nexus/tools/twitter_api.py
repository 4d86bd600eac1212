from __future__ import annotations

from urllib.parse import quote

from loguru import logger

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderError, ProviderUnavailable
from nexus.models.research import PublicMetrics, Tweet, TwitterProfile, TwitterResult
from nexus.tools import fetch

PROVIDER = "twitter"
USER_FIELDS = "description,public_metrics,profile_image_url"


def _profile_from_v2(data: dict) -> TwitterProfile:
    metrics = data.get("public_metrics")
    return TwitterProfile(
        id=data.get("id"),
        name=data.get("name"),
        username=data.get("username"),
        description=data.get("description"),
        profile_image_url=data.get("profile_image_url"),
        public_metrics=PublicMetrics(
            followers_count=metrics.get("followers_count"),
            following_count=metrics.get("following_count"),
            tweet_count=metrics.get("tweet_count"),
        )
        if isinstance(metrics, dict)
        else None,
    )


async def fetch_profile(handle: str, *, settings: Settings | None = None) -> TwitterResult:
    """Look up a user on the public v2 API, then their 10 most recent posts.

    A failed timeline request (non-OK, timeout or transport error) keeps the
    profile with no tweets.
    """
    cfg = settings or default_settings
    token = cfg.twitter_bearer_token
    if not token:
        raise ProviderUnavailable(PROVIDER, "TWITTER_BEARER_TOKEN")

    clean = handle.strip().lstrip("@")
    base = cfg.twitter_api_base_url.rstrip("/")
    headers = {"Authorization": f"Bearer {token}"}

    profile_res = await fetch.get(
        f"{base}/2/users/by/username/{quote(clean, safe='')}",
        provider=PROVIDER,
        timeout_ms=cfg.lookup_timeout_ms,
        params={"user.fields": USER_FIELDS},
        headers=headers,
    )
    fetch.ensure_ok(profile_res, PROVIDER)
    payload = fetch.json_body(profile_res, PROVIDER)
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        raise ProviderError(PROVIDER, f"No Twitter user found for @{clean}")

    profile = _profile_from_v2(data)
    tweets: list[Tweet] = []
    if profile.id:
        try:
            tweets = await _fetch_timeline(base, profile.id, headers, cfg.lookup_timeout_ms)
        except ProviderError as exc:
            logger.warning(f"[twitter] Timeline fetch failed for @{clean}: {exc}")

    return TwitterResult(profile=profile, tweets=tweets)


async def _fetch_timeline(base: str, user_id: str, headers: dict[str, str], timeout_ms: int) -> list[Tweet]:
    response = await fetch.get(
        f"{base}/2/users/{user_id}/tweets",
        provider=PROVIDER,
        timeout_ms=timeout_ms,
        params={"max_results": "10", "tweet.fields": "created_at"},
        headers=headers,
    )
    fetch.ensure_ok(response, PROVIDER)
    payload = fetch.json_body(response, PROVIDER)
    items = payload.get("data") if isinstance(payload, dict) else None
    return [
        Tweet(
            id=str(item.get("id", "")),
            text=str(item.get("text", "")),
            created_at=item.get("created_at"),
        )
        for item in items or []
        if isinstance(item, dict)
    ]

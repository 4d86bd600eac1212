from __future__ import annotations

import re
from typing import Iterable

from nexus.models.research import SearchResult, SocialPost

SOCIAL_DEDUP_PREFIX = 100


def ensure_scheme(url: str) -> str:
    """Prefix ``https://`` when the URL has no http(s) scheme."""
    cleaned = url.strip()
    if re.match(r"^https?://", cleaned, flags=re.IGNORECASE):
        return cleaned
    return f"https://{cleaned}"


def url_key(url: str) -> str:
    """Dedup key for URLs: trailing slash stripped, lowercased."""
    return url.strip().rstrip("/").lower()


def domain_from_website(website: str) -> str:
    """``https://www.acme.xyz/about`` -> ``www.acme.xyz``."""
    return re.sub(r"^https?://", "", website.strip(), flags=re.IGNORECASE).split("/")[0]


def org_login_from_domain(domain: str) -> str:
    """First label of the domain, ignoring a leading ``www.``."""
    host = domain.lower()
    if host.startswith("www."):
        host = host[4:]
    return host.split(".")[0]


def dedupe_by_link(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Keep the first result for each link, preserving order."""
    seen: set[str] = set()
    deduped: list[SearchResult] = []
    for result in results:
        if result.link in seen:
            continue
        seen.add(result.link)
        deduped.append(result)
    return deduped


def dedupe_posts(posts: Iterable[SocialPost]) -> list[SocialPost]:
    """Collapse reposts sharing the same opening text, preserving order."""
    seen: set[str] = set()
    deduped: list[SocialPost] = []
    for post in posts:
        key = post.text[:SOCIAL_DEDUP_PREFIX]
        if key in seen:
            continue
        seen.add(key)
        deduped.append(post)
    return deduped

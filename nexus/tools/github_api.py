from __future__ import annotations

from typing import Any
from urllib.parse import quote

from loguru import logger

from nexus.config import Settings, settings as default_settings
from nexus.models.research import GitHubActivity
from nexus.tools import fetch

PROVIDER = "github"


def _headers(cfg: Settings) -> dict[str, str]:
    # Anonymous requests work; a token only lifts the rate limit.
    headers = {"Accept": "application/vnd.github.v3+json"}
    if cfg.github_token:
        headers["Authorization"] = f"Bearer {cfg.github_token}"
    return headers


async def fetch_org(login: str, *, settings: Settings | None = None) -> dict[str, Any] | None:
    """Org profile, or ``None`` when GitHub has no org by that login."""
    cfg = settings or default_settings
    response = await fetch.get(
        f"{cfg.github_api_base_url.rstrip('/')}/orgs/{quote(login, safe='')}",
        provider=PROVIDER,
        timeout_ms=cfg.lookup_timeout_ms,
        headers=_headers(cfg),
    )
    if response.status_code == 404:
        return None
    fetch.ensure_ok(response, PROVIDER)
    payload = fetch.json_body(response, PROVIDER)
    return payload if isinstance(payload, dict) else None


async def fetch_org_repos(login: str, *, settings: Settings | None = None) -> list[dict[str, Any]]:
    """Ten most recently updated public repos, as an ecosystem-activity signal."""
    cfg = settings or default_settings
    response = await fetch.get(
        f"{cfg.github_api_base_url.rstrip('/')}/orgs/{quote(login, safe='')}/repos",
        provider=PROVIDER,
        timeout_ms=cfg.lookup_timeout_ms,
        params={"sort": "updated", "per_page": "10"},
        headers=_headers(cfg),
    )
    if not response.is_success:
        logger.warning(f"[github] Repo list failed for {login}: {response.status_code}")
        return []
    payload = fetch.json_body(response, PROVIDER)
    return [repo for repo in payload if isinstance(repo, dict)] if isinstance(payload, list) else []


async def fetch_activity(login: str, *, settings: Settings | None = None) -> GitHubActivity:
    org = await fetch_org(login, settings=settings)
    repos = await fetch_org_repos(login, settings=settings) if org else []
    return GitHubActivity(org=org, repos=repos)

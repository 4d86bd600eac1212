from __future__ import annotations

from typing import Any

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderUnavailable
from nexus.tools import fetch
from nexus.tools.web_utils import domain_from_website

PROVIDER = "proxycurl"


async def enrich_company_by_domain(
    domain: str,
    *,
    settings: Settings | None = None,
) -> dict[str, Any] | None:
    """Resolve a company domain to its LinkedIn URL, then fetch the company profile.

    Returns ``None`` when the domain does not resolve to a company.
    """
    cfg = settings or default_settings
    if not cfg.proxycurl_api_key:
        raise ProviderUnavailable(PROVIDER, "PROXYCURL_API_KEY")

    base = cfg.proxycurl_base_url.rstrip("/")
    headers = {"Authorization": f"Bearer {cfg.proxycurl_api_key}"}

    resolve_res = await fetch.get(
        f"{base}/linkedin/company/resolve",
        provider=PROVIDER,
        timeout_ms=cfg.lookup_timeout_ms,
        params={"company_domain": domain_from_website(domain)},
        headers=headers,
    )
    if resolve_res.status_code == 404:
        return None
    fetch.ensure_ok(resolve_res, PROVIDER)
    resolved = fetch.json_body(resolve_res, PROVIDER)
    linkedin_url = resolved.get("url") if isinstance(resolved, dict) else None
    if not linkedin_url:
        return None

    profile_res = await fetch.get(
        f"{base}/v2/linkedin/company",
        provider=PROVIDER,
        timeout_ms=cfg.lookup_timeout_ms,
        params={"url": linkedin_url},
        headers=headers,
    )
    fetch.ensure_ok(profile_res, PROVIDER)
    profile = fetch.json_body(profile_res, PROVIDER)
    return profile if isinstance(profile, dict) else None

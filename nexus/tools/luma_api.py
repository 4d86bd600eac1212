from __future__ import annotations

from typing import Any

from nexus.config import Settings, settings as default_settings
from nexus.errors import ProviderUnavailable
from nexus.tools import fetch

PROVIDER = "luma"


async def list_events(
    *,
    after: str | None = None,
    before: str | None = None,
    limit: int | None = None,
    settings: Settings | None = None,
) -> list[dict[str, Any]]:
    """List events from the configured Luma calendar (ISO ``after``/``before`` bounds)."""
    cfg = settings or default_settings
    if not cfg.luma_api_key:
        raise ProviderUnavailable(PROVIDER, "LUMA_API_KEY")

    params: dict[str, str] = {}
    if after:
        params["after"] = after
    if before:
        params["before"] = before
    if limit:
        params["pagination_limit"] = str(limit)

    response = await fetch.get(
        f"{cfg.luma_api_base_url.rstrip('/')}/v1/calendar/list-events",
        provider=PROVIDER,
        timeout_ms=cfg.lookup_timeout_ms,
        params=params,
        headers={
            "Authorization": f"Bearer {cfg.luma_api_key}",
            "Content-Type": "application/json",
        },
    )
    fetch.ensure_ok(response, PROVIDER)
    payload = fetch.json_body(response, PROVIDER)
    entries = payload.get("entries") if isinstance(payload, dict) else None
    return [
        entry["event"]
        for entry in entries or []
        if isinstance(entry, dict) and isinstance(entry.get("event"), dict)
    ]

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

import httpx

from nexus.errors import ProviderError, ProviderTimeout

DEFAULT_TIMEOUT_MS = 10_000

T = TypeVar("T")


async def fetch_bounded(
    request: Awaitable[T],
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    *,
    provider: str = "fetch",
) -> T:
    """Await a network call, cancelling it once ``timeout_ms`` has elapsed.

    The deadline is scoped to this call only: sibling requests running
    concurrently keep their own bounds. The timer is released on every exit
    path, whether the request succeeds, raises, or is cancelled.
    """
    try:
        async with asyncio.timeout(max(timeout_ms, 1) / 1000.0):
            return await request
    except TimeoutError as exc:
        raise ProviderTimeout(provider, timeout_ms) from exc


async def request(
    method: str,
    url: str,
    *,
    provider: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    **kwargs: Any,
) -> httpx.Response:
    """Issue one HTTP request under a deadline and return the raw response.

    Transport failures are raised as ``ProviderError``; status handling is
    left to the caller because several providers treat non-OK as "no data".
    """
    async with httpx.AsyncClient(follow_redirects=True) as client:
        try:
            return await fetch_bounded(
                client.request(method, url, **kwargs),
                timeout_ms,
                provider=provider,
            )
        except httpx.HTTPError as exc:
            raise ProviderError(provider, f"{provider} request failed: {exc}") from exc


async def get(url: str, *, provider: str, timeout_ms: int = DEFAULT_TIMEOUT_MS, **kwargs: Any) -> httpx.Response:
    return await request("GET", url, provider=provider, timeout_ms=timeout_ms, **kwargs)


async def post(url: str, *, provider: str, timeout_ms: int = DEFAULT_TIMEOUT_MS, **kwargs: Any) -> httpx.Response:
    return await request("POST", url, provider=provider, timeout_ms=timeout_ms, **kwargs)


def ensure_ok(response: httpx.Response, provider: str) -> httpx.Response:
    """Raise ``ProviderError`` for a non-2xx response, with the body's error detail."""
    if response.is_success:
        return response
    raise ProviderError(
        provider,
        f"{provider} {response.status_code}: {error_detail(response)}",
        status_code=response.status_code,
    )


def error_detail(response: httpx.Response) -> str:
    body = response.text
    try:
        payload = response.json()
    except ValueError:
        return body or response.reason_phrase
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict) and first.get("message"):
                return str(first["message"])
            return str(first)
        for key in ("message", "error", "detail"):
            if payload.get(key):
                return str(payload[key])
    return body or response.reason_phrase


def json_body(response: httpx.Response, provider: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(provider, f"{provider} returned a non-JSON body") from exc

"""OpenRouter chat-completions client used for research analysis."""
from __future__ import annotations

import json
import re
import time
from typing import Any

from nexus.config import Settings, settings as default_settings
from nexus.errors import LLMParseError, ProviderError, ProviderUnavailable
from nexus.tools.fetch import fetch_bounded

PROVIDER = "openrouter"

FENCE_OPEN_RE = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
FENCE_CLOSE_RE = re.compile(r"\s*```\s*$")


def clean_json(text: str) -> str:
    """Strip a markdown code fence wrapped around a JSON reply."""
    return FENCE_CLOSE_RE.sub("", FENCE_OPEN_RE.sub("", text)).strip()


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Parse a model reply that should be one JSON object."""
    text = clean_json(raw_text)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LLMParseError(raw_text, f"reply is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LLMParseError(raw_text, "reply is not a JSON object")
    return parsed


def get_client(settings: Settings | None = None):
    """Get an OpenRouter client via the OpenAI-compatible SDK."""
    from openai import AsyncOpenAI

    cfg = settings or default_settings
    base_url = cfg.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    return AsyncOpenAI(
        api_key=cfg.openrouter_api_key,
        base_url=base_url,
        max_retries=0,
        default_headers={
            "HTTP-Referer": cfg.app_referer,
            "X-Title": cfg.app_title,
        },
    )


def get_model(settings: Settings | None = None) -> str:
    """Get the active OpenRouter model id."""
    cfg = settings or default_settings
    if cfg.openrouter_model:
        return cfg.openrouter_model
    return cfg.default_model


class ChatCompletions:
    """Text-in, text-out completion calls with a hard deadline and call logging."""

    def __init__(self, settings: Settings | None = None, openai_client: Any | None = None):
        self.settings = settings or default_settings
        self._client = openai_client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = get_client(self.settings)
        return self._client

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        caller: str,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        if not self.settings.openrouter_api_key.strip():
            raise ProviderUnavailable(PROVIDER, "OPENROUTER_API_KEY")

        from nexus.services import logger as log_service

        used_model = model or get_model(self.settings)
        t0 = time.monotonic()
        try:
            response = await fetch_bounded(
                self._get_client().chat.completions.create(
                    model=used_model,
                    messages=messages,
                    max_tokens=max_tokens or self.settings.llm_max_tokens,
                    temperature=self.settings.llm_temperature if temperature is None else temperature,
                ),
                self.settings.llm_timeout_ms,
                provider=PROVIDER,
            )
        except Exception as exc:
            log_service.log_llm_call(
                model=used_model,
                caller=caller,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(exc),
            )
            if isinstance(exc, ProviderError):
                raise
            raise ProviderError(PROVIDER, f"OpenRouter API error: {exc}") from exc

        usage = getattr(response, "usage", None)
        log_service.log_llm_call(
            model=used_model,
            caller=caller,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )

        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None) or ""

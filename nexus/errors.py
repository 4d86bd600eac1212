"""Exception taxonomy shared by the source adapters.

Adapters raise these; the orchestrator and the deep-research loop are the
boundaries that catch them and fall back to empty values.
"""
from __future__ import annotations


class ResearchError(Exception):
    """Base class for every failure raised inside the research pipeline."""


class ProviderUnavailable(ResearchError):
    """No API key configured for an optional source; no request was made."""

    def __init__(self, provider: str, setting: str | None = None):
        self.provider = provider
        self.setting = setting
        detail = f"{setting} is not configured" if setting else "not configured"
        super().__init__(f"{provider}: {detail}")


class ProviderError(ResearchError):
    """A configured provider answered with a non-OK status or a bad body."""

    def __init__(self, provider: str, message: str, *, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class ProviderTimeout(ProviderError):
    """The request did not complete inside its deadline."""

    def __init__(self, provider: str, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(provider, f"{provider} timed out after {timeout_ms}ms")


class LLMParseError(ResearchError, ValueError):
    """The model reply is not a JSON object, even after fence stripping."""

    def __init__(self, raw_text: str, reason: str):
        self.raw_text = raw_text
        super().__init__(reason)

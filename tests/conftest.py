from __future__ import annotations

import pytest

from nexus.config import Settings

UNCONFIGURED = {
    "openrouter_api_key": "",
    "firecrawl_api_key": "",
    "jina_api_key": "",
    "serpapi_api_key": "",
    "tavily_api_key": "",
    "twitter_bearer_token": "",
    "socialapi_api_key": "",
    "github_token": "",
    "proxycurl_api_key": "",
    "luma_api_key": "",
    "socialapi_twitter_user_path": "",
    "socialapi_auth_header": "Authorization",
    "log_to_file": False,
}


@pytest.fixture
def make_settings():
    """Settings with every provider unconfigured unless overridden."""

    def factory(**overrides) -> Settings:
        return Settings(_env_file=None, **{**UNCONFIGURED, **overrides})

    return factory

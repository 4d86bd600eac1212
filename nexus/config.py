from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter (deep research + analysis)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    openrouter_model: str = ""
    llm_max_tokens: int = 4096
    llm_temperature: float = 0.3
    llm_timeout_ms: int = 30000
    app_referer: str = "https://nexus.local"
    app_title: str = "NEXUS Research Hub"

    # Scrape providers
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"
    jina_reader_base_url: str = "https://r.jina.ai"
    jina_api_key: str = ""  # optional, raises reader rate limits
    scrape_timeout_ms: int = 12000

    # Search
    serpapi_api_key: str = ""
    serpapi_base_url: str = "https://serpapi.com"
    search_max_results: int = 10
    tavily_api_key: str = ""
    search_fallback_to_tavily: bool = True

    # Social
    twitter_bearer_token: str = ""
    twitter_api_base_url: str = "https://api.twitter.com"
    socialapi_api_key: str = ""
    socialapi_base_url: str = "https://api.socialapi.me"
    socialapi_twitter_user_path: str = ""  # e.g. /v1/twitter/user/:username
    socialapi_auth_header: str = "Authorization"  # Authorization | X-API-Key
    social_timeout_ms: int = 15000

    # Enrichment
    github_token: str = ""
    github_api_base_url: str = "https://api.github.com"
    proxycurl_api_key: str = ""
    proxycurl_base_url: str = "https://nubela.co/proxycurl/api"
    luma_api_key: str = ""
    luma_api_base_url: str = "https://public-api.luma.com"
    luma_events_base_url: str = "https://lu.ma/"
    lookup_timeout_ms: int = 10000

    # Orchestration controls
    deep_research_max_rounds: int = 2
    event_scrape_max_parallel: int = 4
    calendar_events_limit: int = 20

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_to_file: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def has_social_api_key(self) -> bool:
        return bool(self.socialapi_api_key.strip())


settings = Settings()

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(slots=True)
class ResearchInput:
    name: str
    website: str | None = None
    twitter_handle: str | None = None
    enrich: bool = True

    def __post_init__(self) -> None:
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValueError("name is required")
        self.website = (self.website or "").strip() or None
        handle = (self.twitter_handle or "").strip().lstrip("@")
        self.twitter_handle = handle or None


@dataclass(slots=True)
class ScrapeResult:
    content: str
    title: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "title": self.title}


@dataclass(slots=True)
class SearchResult:
    """One organic web search hit; ``link`` is the dedup key."""

    title: str
    link: str
    snippet: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "link": self.link, "snippet": self.snippet}


@dataclass(slots=True)
class SocialUser:
    name: str = ""
    username: str = ""


@dataclass(slots=True)
class SocialPost:
    """One social search hit."""

    text: str
    user: SocialUser = field(default_factory=SocialUser)
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "text": self.text,
            "user": {"name": self.user.name, "username": self.user.username},
        }
        if self.created_at is not None:
            data["created_at"] = self.created_at
        return data


@dataclass(slots=True)
class PublicMetrics:
    followers_count: int | None = None
    following_count: int | None = None
    tweet_count: int | None = None


@dataclass(slots=True)
class TwitterProfile:
    id: str | None = None
    name: str | None = None
    username: str | None = None
    description: str | None = None
    profile_image_url: str | None = None
    public_metrics: PublicMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        metrics = None
        if self.public_metrics is not None:
            metrics = {
                "followers_count": self.public_metrics.followers_count,
                "following_count": self.public_metrics.following_count,
                "tweet_count": self.public_metrics.tweet_count,
            }
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "description": self.description,
            "profile_image_url": self.profile_image_url,
            "public_metrics": metrics,
        }


@dataclass(slots=True)
class Tweet:
    id: str
    text: str
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "created_at": self.created_at}


@dataclass(slots=True)
class TwitterResult:
    profile: TwitterProfile
    tweets: list[Tweet] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile.to_dict(),
            "tweets": [t.to_dict() for t in self.tweets],
        }


@dataclass(slots=True)
class ScrapedEvent:
    """One calendar event discovered by scraping; ``url`` is the only required field."""

    url: str
    title: str = ""
    date: str | None = None
    start_at: str | None = None
    description: str | None = None
    snippet: str | None = None
    organizer: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "date": self.date,
            "startAt": self.start_at,
            "description": self.description,
            "snippet": self.snippet,
            "organizer": self.organizer,
        }


@dataclass(slots=True)
class GitHubActivity:
    org: dict[str, Any] | None = None
    repos: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"org": self.org, "repos": self.repos}


@dataclass(slots=True)
class ResearchResult:
    """Everything gathered for one company. Every source is independently optional."""

    website: ScrapeResult | None = None
    google: list[SearchResult] = field(default_factory=list)
    twitter: TwitterResult | None = None
    proxycurl: dict[str, Any] | None = None
    github: GitHubActivity = field(default_factory=GitHubActivity)
    luma: list[dict[str, Any]] = field(default_factory=list)
    luma_scraped: list[ScrapedEvent] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "website": self.website.to_dict() if self.website else None,
            "google": [r.to_dict() for r in self.google],
            "twitter": self.twitter.to_dict() if self.twitter else None,
            "proxycurl": self.proxycurl,
            "github": self.github.to_dict(),
            "luma": self.luma,
            "lumaScraped": [e.to_dict() for e in self.luma_scraped],
            "errors": list(self.errors),
        }


SourceType = Literal["web", "twitter"]


@dataclass(slots=True)
class Source:
    title: str
    url: str
    type: SourceType

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "type": self.type}


@dataclass(slots=True)
class TwitterInsights:
    summary: str = ""
    tweets: list[SocialPost] = field(default_factory=list)


@dataclass(slots=True)
class WebInsights:
    summary: str = ""
    results: list[SearchResult] = field(default_factory=list)


@dataclass(slots=True)
class DeepResearchResult:
    summary: str = ""
    key_findings: list[str] = field(default_factory=list)
    twitter_insights: TwitterInsights = field(default_factory=TwitterInsights)
    web_results: WebInsights = field(default_factory=WebInsights)
    follow_up_queries: list[str] = field(default_factory=list)
    sources: list[Source] = field(default_factory=list)
    rounds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "keyFindings": list(self.key_findings),
            "twitterInsights": {
                "summary": self.twitter_insights.summary,
                "tweets": [t.to_dict() for t in self.twitter_insights.tweets],
            },
            "webResults": {
                "summary": self.web_results.summary,
                "results": [r.to_dict() for r in self.web_results.results],
            },
            "followUpQueries": list(self.follow_up_queries),
            "sources": [s.to_dict() for s in self.sources],
            "rounds": self.rounds,
        }

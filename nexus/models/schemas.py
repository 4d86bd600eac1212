from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# --- Requests ---


class ResearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    website: str | None = None
    twitter_handle: str | None = Field(default=None, alias="twitterHandle")
    enrich: bool | None = True


class DeepResearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    max_rounds: int | None = Field(default=None, alias="maxRounds")


# --- Responses ---


class HealthResponse(BaseModel):
    status: str
    service: str

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from nexus.agents.deep_research import deep_research
from nexus.agents.orchestrator import research_company
from nexus.models.research import ResearchInput
from nexus.models.schemas import DeepResearchRequest, ResearchRequest

router = APIRouter(prefix="/api/research", tags=["research"])


@router.post("")
async def run_company_research(request: ResearchRequest):
    """Aggregate website, search, social and enrichment data for one company."""
    try:
        research_input = ResearchInput(
            name=request.name,
            website=request.website,
            twitter_handle=request.twitter_handle,
            enrich=request.enrich is not False,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = await research_company(research_input)
    return result.to_dict()


@router.post("/deep")
async def run_deep_research(request: DeepResearchRequest):
    """Multi-round web + social research synthesized by the LLM."""
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="query is required")

    result = await deep_research(query, request.max_rounds)
    return result.to_dict()

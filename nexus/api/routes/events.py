from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from nexus.research_core.events.service import EventScraper

router = APIRouter(prefix="/api/luma/events", tags=["events"])


@router.get("/for-company")
async def events_for_company(company: str = Query(default="")):
    """Scraped calendar events for a company, or placeholders for its calendar URL."""
    name = company.strip()
    if not name:
        raise HTTPException(status_code=400, detail="company is required")

    events = await EventScraper().events_for_company(name)
    return [event.to_dict() for event in events]

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nexus.api.routes import events, research
from nexus.config import settings
from nexus.models.schemas import HealthResponse
from nexus.services import logger as log_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_service.log_event("startup", "nexus-research API started")
    yield


app = FastAPI(
    title="NEXUS Research",
    description="Company and deep research aggregation for the web3 events CRM",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(research.router)
app.include_router(events.router)


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", service="nexus-research")

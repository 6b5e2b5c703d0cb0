"""Health check endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.database import get_db
from api.services.enrichment import EnrichmentWorkerPool, count_stale, get_enrichment_pool
from common.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class EnrichmentHealthResponse(BaseModel):
    """Enrichment backlog.

    ``stale`` counts snippets still pending after ``stale_after_minutes``;
    a growing value means jobs were dropped or lost.
    """

    status: str
    workers_running: bool
    queue_depth: int
    queue_capacity: int
    stale: int
    stale_after_minutes: int


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns the service status and version.
    Used by load balancers and monitoring systems.
    """
    return HealthResponse(status="healthy", version="0.1.0")


@router.get("/health/enrichment", response_model=EnrichmentHealthResponse)
async def enrichment_health(
    pool: EnrichmentWorkerPool = Depends(get_enrichment_pool),
    db: AsyncSession = Depends(get_db),
) -> EnrichmentHealthResponse:
    """Report queue depth and snippets stuck awaiting enrichment."""
    stale = await count_stale(db, settings.enrichment_stale_minutes)
    degraded = not pool.running or stale > 0
    return EnrichmentHealthResponse(
        status="degraded" if degraded else "healthy",
        workers_running=pool.running,
        queue_depth=pool.queue_depth,
        queue_capacity=pool.queue.maxsize,
        stale=stale,
        stale_after_minutes=settings.enrichment_stale_minutes,
    )

"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import analysis, health, search, snippets
from api.services.database import close_db
from api.services.enrichment import get_enrichment_pool
from common.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    # Startup - enrichment workers drain the queue for the app's lifetime
    pool = get_enrichment_pool()
    pool.start()
    yield
    # Shutdown - queued jobs are dropped and stay needs_analysis
    await pool.stop()
    await close_db()


app = FastAPI(
    title="Snippet Vault API",
    description="Code snippet vault with enrichment, search and trending",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(analysis.router, tags=["Analysis"])
app.include_router(snippets.router, tags=["Snippets"])
app.include_router(search.router, tags=["Search"])

"""Search router - faceted search and the trending feed."""

import dataclasses
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.dependencies import get_db_user
from api.models import User
from api.routers.errors import to_http_exception
from api.schemas.search import SearchResponse, TrendingItem, TrendingResponse
from api.schemas.snippet import SnippetSummary
from api.services.database import get_db
from api.services.errors import SnippetError
from api.services.search_service import SearchFilters, SearchIndexer, SortOption
from api.services.trending_service import DEFAULT_TIMEFRAME, TrendingRanker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.get(
    "",
    response_model=SearchResponse,
    summary="Search snippets with facets",
)
async def search_snippets(
    q: str | None = Query(None, max_length=500, description="Free-text query over title and summary"),
    language: str | None = Query(None),
    tags: list[str] | None = Query(None, description="All of these tags"),
    frameworks: list[str] | None = Query(None, description="Any of these frameworks"),
    topics: list[str] | None = Query(None, description="Any of these topics"),
    category: str | None = Query(None),
    domain: str | None = Query(None),
    complexity: str | None = Query(None),
    min_quality: int | None = Query(None, ge=0, le=10),
    max_age: int | None = Query(None, ge=1, description="Created within this many days"),
    sort: SortOption = Query("recent"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
) -> SearchResponse:
    """Search public, unlisted and own snippets.

    Facets are counted over everything the caller can see, independent of
    the filters applied, so they describe what else could be selected.
    """
    filters = SearchFilters(
        language=language,
        tags=tags or [],
        frameworks=frameworks or [],
        topics=topics or [],
        category=category,
        domain=domain,
        complexity=complexity,
        min_quality=min_quality,
        max_age=max_age,
        search=q,
    )
    indexer = SearchIndexer(db)
    found = await indexer.search(user.id, filters, page=page, limit=limit, sort=sort)

    return SearchResponse(
        results=[SnippetSummary.model_validate(s) for s in found.results],
        pagination=dataclasses.asdict(found.pagination),
        facets=dataclasses.asdict(found.facets),
    )


@router.get(
    "/trending",
    response_model=TrendingResponse,
    summary="Trending public snippets",
)
async def trending_snippets(
    timeframe: str = Query(DEFAULT_TIMEFRAME, description="24h, 7d or 30d"),
    category: str | None = Query(None),
    language: str | None = Query(None),
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
) -> TrendingResponse:
    """Rank public snippets created within the timeframe by lifetime engagement.

    Raises:
        HTTPException: 400 on an unknown timeframe
    """
    ranker = TrendingRanker(db)
    try:
        items = await ranker.trending(timeframe, category=category, language=language, limit=limit)
    except SnippetError as e:
        raise to_http_exception(e) from e

    return TrendingResponse(
        timeframe=timeframe,
        items=[
            TrendingItem(
                snippet=SnippetSummary.model_validate(item.snippet),
                score=item.score,
                owner_id=item.owner_id,
                owner_username=item.owner_username,
            )
            for item in items
        ],
        total=len(items),
    )

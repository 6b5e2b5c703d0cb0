"""Search service - authorization-aware filtered search with facets.

Every query starts from the requester's base set (public, unlisted or
owned). Filters narrow that set; facets are grouped over the base set
alone so filter menus stay stable while filters are applied.

Filter semantics:
    tags        all listed tags present (array containment, ``@>``)
    frameworks  any listed framework present (array overlap, ``&&``)
    topics      any listed topic present (``&&``)
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Literal

from sqlalchemy import REAL, Select, cast, func, or_, select
from sqlalchemy.dialects.postgresql import ARRAY, array
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from api.models import Snippet
from api.services.normalization import normalize_set, slugify

logger = logging.getLogger(__name__)

SortOption = Literal["relevance", "popular", "quality", "recent"]
SORT_OPTIONS: tuple[str, ...] = ("relevance", "popular", "quality", "recent")

TEXT_SEARCH_CONFIG = "english"
# ts_rank weight order is {D, C, B, A}; title is A, summary is B (5:2)
TEXT_RANK_WEIGHTS = (0.0, 0.0, 0.4, 1.0)


@dataclass
class SearchFilters:
    """Optional narrowing applied on top of the base set."""

    language: str | None = None
    tags: list[str] = field(default_factory=list)
    frameworks: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    category: str | None = None
    domain: str | None = None
    complexity: str | None = None
    min_quality: int | None = None
    max_age: int | None = None
    search: str | None = None

    def normalized(self) -> "SearchFilters":
        """Slug-normalized copy, so filters match stored values."""
        return SearchFilters(
            language=slugify(self.language) or None,
            tags=normalize_set(self.tags),
            frameworks=normalize_set(self.frameworks),
            topics=normalize_set(self.topics),
            category=slugify(self.category) or None,
            domain=slugify(self.domain) or None,
            complexity=slugify(self.complexity) or None,
            min_quality=self.min_quality,
            max_age=self.max_age,
            search=(self.search or "").strip() or None,
        )


@dataclass
class Pagination:
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


@dataclass
class FacetCount:
    value: str
    count: int


@dataclass
class Facets:
    languages: list[FacetCount] = field(default_factory=list)
    categories: list[FacetCount] = field(default_factory=list)
    complexities: list[FacetCount] = field(default_factory=list)
    domains: list[FacetCount] = field(default_factory=list)
    frameworks: list[FacetCount] = field(default_factory=list)


@dataclass
class SearchResults:
    results: list[Snippet]
    pagination: Pagination
    facets: Facets


def authorization_clause(requester_id: uuid.UUID | None) -> ColumnElement[bool]:
    """Base set: public or unlisted snippets, plus the requester's own."""
    visible = Snippet.visibility.in_(("public", "unlisted"))
    if requester_id is None:
        return visible
    return or_(visible, Snippet.user_id == requester_id)


def text_query(text: str):
    return func.websearch_to_tsquery(TEXT_SEARCH_CONFIG, text)


def text_rank(text: str):
    weights = cast(array(list(TEXT_RANK_WEIGHTS)), ARRAY(REAL))
    return func.ts_rank(weights, Snippet.search_vector, text_query(text))


def build_filter_conditions(
    filters: SearchFilters,
    now: datetime | None = None,
) -> list[ColumnElement[bool]]:
    """Translate (already normalized) filters into WHERE conditions."""
    conditions: list[ColumnElement[bool]] = []

    if filters.language:
        conditions.append(Snippet.language == filters.language)
    if filters.tags:
        conditions.append(Snippet.tags.contains(filters.tags))
    if filters.frameworks:
        conditions.append(Snippet.frameworks.overlap(filters.frameworks))
    if filters.topics:
        conditions.append(Snippet.topics.overlap(filters.topics))
    if filters.category:
        conditions.append(Snippet.category == filters.category)
    if filters.domain:
        conditions.append(Snippet.domain == filters.domain)
    if filters.complexity:
        conditions.append(Snippet.complexity == filters.complexity)
    if filters.min_quality is not None:
        conditions.append(Snippet.quality_overall >= filters.min_quality)
    if filters.max_age is not None:
        since = (now or datetime.now(UTC)) - timedelta(days=filters.max_age)
        conditions.append(Snippet.created_at >= since)
    if filters.search:
        conditions.append(Snippet.search_vector.op("@@")(text_query(filters.search)))

    return conditions


def build_order_by(filters: SearchFilters, sort: str) -> list:
    """Pinned snippets always first, then the requested ordering."""
    order = [Snippet.pinned.desc()]

    if sort == "relevance":
        if filters.search:
            order.append(text_rank(filters.search).desc())
        else:
            order.append(Snippet.views.desc())
    elif sort == "popular":
        order.extend([Snippet.views.desc(), Snippet.favorites_count.desc()])
    elif sort == "quality":
        order.append(Snippet.quality_overall.desc().nulls_last())

    order.append(Snippet.created_at.desc())
    return order


def build_search_query(
    requester_id: uuid.UUID | None,
    filters: SearchFilters,
    sort: str = "recent",
    page: int = 1,
    limit: int = 20,
    now: datetime | None = None,
) -> Select:
    return (
        select(Snippet)
        .where(authorization_clause(requester_id), *build_filter_conditions(filters, now))
        .order_by(*build_order_by(filters, sort))
        .limit(limit)
        .offset((page - 1) * limit)
    )


def build_count_query(
    requester_id: uuid.UUID | None,
    filters: SearchFilters,
    now: datetime | None = None,
) -> Select:
    return (
        select(func.count())
        .select_from(Snippet)
        .where(authorization_clause(requester_id), *build_filter_conditions(filters, now))
    )


def _group_count(column, base: ColumnElement[bool]) -> Select:
    value = column.label("value")
    count = func.count().label("count")
    return (
        select(value, count)
        .where(base)
        .group_by(column)
        .order_by(count.desc(), column.asc())
    )


def build_facet_queries(requester_id: uuid.UUID | None) -> dict[str, Select]:
    """One grouped count query per facet, all over the base set."""
    base = authorization_clause(requester_id)

    unwound = select(func.unnest(Snippet.frameworks).label("value")).where(base).subquery()
    framework_count = func.count().label("count")
    frameworks = (
        select(unwound.c.value, framework_count)
        .group_by(unwound.c.value)
        .order_by(framework_count.desc(), unwound.c.value.asc())
    )

    return {
        "languages": _group_count(Snippet.language, base),
        "categories": _group_count(Snippet.category, base),
        "complexities": _group_count(Snippet.complexity, base),
        "domains": _group_count(Snippet.domain, base),
        "frameworks": frameworks,
    }


class SearchIndexer:
    """Runs paginated, faceted searches over the snippet corpus."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search(
        self,
        requester_id: uuid.UUID | None,
        filters: SearchFilters | None = None,
        page: int = 1,
        limit: int = 20,
        sort: str = "recent",
    ) -> SearchResults:
        """Search the requester's base set.

        Args:
            requester_id: Current user, or None for anonymous access
            filters: Optional narrowing; values are slug-normalized here
            page: 1-based page number
            limit: Page size
            sort: relevance, popular, quality or recent

        Returns:
            Page of snippets with pagination and base-set facets
        """
        filters = (filters or SearchFilters()).normalized()
        now = datetime.now(UTC)

        result = await self.db.execute(
            build_search_query(requester_id, filters, sort, page, limit, now)
        )
        snippets = list(result.scalars().all())

        total = (await self.db.execute(build_count_query(requester_id, filters, now))).scalar() or 0
        facets = await self.facets(requester_id)

        logger.info(
            "Search executed",
            extra={
                "sort": sort,
                "total": total,
                "has_text": bool(filters.search),
                "page": page,
            },
        )
        return SearchResults(
            results=snippets,
            pagination=Pagination.build(page, limit, total),
            facets=facets,
        )

    async def facets(self, requester_id: uuid.UUID | None) -> Facets:
        facets = Facets()
        for name, query in build_facet_queries(requester_id).items():
            result = await self.db.execute(query)
            rows = result.mappings().all()
            setattr(facets, name, [FacetCount(value=r["value"], count=r["count"]) for r in rows])
        return facets

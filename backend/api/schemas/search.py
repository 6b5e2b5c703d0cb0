"""Search and trending schemas."""

import uuid

from pydantic import BaseModel, Field

from api.schemas.snippet import Pagination, SnippetSummary


class FacetCount(BaseModel):
    value: str
    count: int


class SearchFacets(BaseModel):
    """Counts over everything the requester can see, ignoring applied filters."""

    languages: list[FacetCount] = Field(default_factory=list)
    categories: list[FacetCount] = Field(default_factory=list)
    complexities: list[FacetCount] = Field(default_factory=list)
    domains: list[FacetCount] = Field(default_factory=list)
    frameworks: list[FacetCount] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Response from the search endpoint."""

    results: list[SnippetSummary] = Field(description="Matching snippets, pinned first")
    pagination: Pagination
    facets: SearchFacets


class TrendingItem(BaseModel):
    snippet: SnippetSummary
    score: int = Field(description="views + 3*copied + 5*stars (lifetime)")
    owner_id: uuid.UUID
    owner_username: str | None = None


class TrendingResponse(BaseModel):
    timeframe: str
    items: list[TrendingItem]
    total: int = Field(description="Number of items returned")

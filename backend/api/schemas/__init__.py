"""API schemas package."""

from api.schemas.analysis import (
    ClassifyRequest,
    ClassifyResponse,
    GenerateRequest,
    GenerateResponse,
)
from api.schemas.search import SearchResponse, TrendingResponse
from api.schemas.snippet import (
    SnippetCreate,
    SnippetDeleteResponse,
    SnippetListResponse,
    SnippetResponse,
    SnippetUpdate,
)

__all__ = [
    "ClassifyRequest",
    "ClassifyResponse",
    "GenerateRequest",
    "GenerateResponse",
    "SearchResponse",
    "SnippetCreate",
    "SnippetDeleteResponse",
    "SnippetListResponse",
    "SnippetResponse",
    "SnippetUpdate",
    "TrendingResponse",
]

"""Snippets router - CRUD endpoints for code snippets.

All endpoints require a verified bearer token. Snippet ids are taken as
plain strings and parsed by the service, so malformed ids return 400.
"""

import dataclasses
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.dependencies import get_db_user
from api.models import User
from api.routers.errors import to_http_exception
from api.schemas.snippet import (
    Pagination,
    SnippetCopyResponse,
    SnippetCreate,
    SnippetDeleteResponse,
    SnippetListResponse,
    SnippetResponse,
    SnippetSummary,
    SnippetUpdate,
)
from api.services.database import get_db
from api.services.enrichment import EnrichmentWorkerPool, get_enrichment_pool
from api.services.errors import SnippetError
from api.services.search_service import Pagination as PageInfo
from api.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snippets", tags=["snippets"])


@router.post(
    "",
    response_model=SnippetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new snippet",
)
async def create_snippet(
    request: SnippetCreate,
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
    pool: EnrichmentWorkerPool = Depends(get_enrichment_pool),
) -> SnippetResponse:
    """Create a new code snippet.

    The snippet is committed before the response is built, then queued
    for background enrichment. The response never waits for enrichment.

    Raises:
        HTTPException: 400 with field-level errors on validation failure
    """
    service = SnippetService(db)
    try:
        snippet = await service.create(
            user_id=user.id,
            title=request.title,
            code=request.code,
            language=request.language,
            filename=request.filename,
            summary=request.summary,
            documentation=request.documentation,
            notes=request.notes,
            tags=request.tags,
            frameworks=request.frameworks,
            topics=request.topics,
            libraries=request.libraries,
            category=request.category,
            domain=request.domain,
            complexity=request.complexity,
            visibility=request.visibility,
            pinned=request.pinned,
            encryption=request.encryption.as_stored() if request.encryption else None,
        )
    except SnippetError as e:
        raise to_http_exception(e) from e

    # Enrichment workers use their own sessions; the row must be visible first
    await db.commit()
    if snippet.needs_analysis:
        pool.submit(snippet.id)

    return SnippetResponse.model_validate(snippet)


@router.get(
    "/mine",
    response_model=SnippetListResponse,
    summary="List the caller's snippets",
)
async def list_my_snippets(
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    archived: bool = Query(False, description="Show archived instead of active snippets"),
    pinned: bool | None = Query(None),
    language: str | None = Query(None),
    tags: list[str] | None = Query(None, description="Any of these tags"),
) -> SnippetListResponse:
    """List the authenticated user's snippets, pinned first then newest."""
    service = SnippetService(db)
    snippets, total = await service.list_mine(
        user.id,
        page=page,
        limit=limit,
        archived=archived,
        pinned=pinned,
        language=language,
        tags=tags,
    )
    return SnippetListResponse(
        items=[SnippetSummary.model_validate(s) for s in snippets],
        pagination=Pagination(**dataclasses.asdict(PageInfo.build(page, limit, total))),
    )


@router.get(
    "/{snippet_id}",
    response_model=SnippetResponse,
    summary="Get a snippet by ID",
)
async def get_snippet(
    snippet_id: str,
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
) -> SnippetResponse:
    """Get a snippet the caller may see; counts a view for non-owners.

    Raises:
        HTTPException: 400 malformed id, 403 private snippet of another user, 404
    """
    service = SnippetService(db)
    try:
        snippet = await service.get_for_viewer(snippet_id, viewer_id=user.id)
    except SnippetError as e:
        raise to_http_exception(e) from e

    return SnippetResponse.model_validate(snippet)


@router.put(
    "/{snippet_id}",
    response_model=SnippetResponse,
    summary="Update a snippet",
)
async def update_snippet(
    snippet_id: str,
    request: SnippetUpdate,
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
) -> SnippetResponse:
    """Update an existing snippet. Only the owner may update.

    Raises:
        HTTPException: 400 malformed id or validation, 403 not owner, 404
    """
    service = SnippetService(db)
    try:
        snippet = await service.update(
            snippet_id=snippet_id,
            user_id=user.id,
            changes=request.changes(),
            filename=request.filename,
        )
    except SnippetError as e:
        raise to_http_exception(e) from e

    return SnippetResponse.model_validate(snippet)


@router.delete(
    "/{snippet_id}",
    response_model=SnippetDeleteResponse,
    summary="Delete a snippet",
)
async def delete_snippet(
    snippet_id: str,
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
) -> SnippetDeleteResponse:
    """Delete a snippet. Only the owner may delete."""
    service = SnippetService(db)
    try:
        deleted_id = await service.delete(snippet_id=snippet_id, user_id=user.id)
    except SnippetError as e:
        raise to_http_exception(e) from e

    return SnippetDeleteResponse(deleted=True, id=deleted_id)


@router.post(
    "/{snippet_id}/copy",
    response_model=SnippetCopyResponse,
    summary="Record a copy of the snippet's code",
)
async def copy_snippet(
    snippet_id: str,
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
) -> SnippetCopyResponse:
    service = SnippetService(db)
    try:
        snippet = await service.record_copy(snippet_id, viewer_id=user.id)
    except SnippetError as e:
        raise to_http_exception(e) from e

    return SnippetCopyResponse(id=snippet.id, copied=snippet.copied)

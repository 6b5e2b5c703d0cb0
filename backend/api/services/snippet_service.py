"""Snippet service - create, read, update and delete code snippets.

Every write goes through the normalization pipeline. Ids arrive as raw
strings and are parsed here, so a malformed id is a distinct error from
a missing snippet.
"""

import dataclasses
import logging
import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.models import Snippet
from api.services.errors import (
    MalformedIdError,
    SnippetAccessDeniedError,
    SnippetNotFoundError,
)
from api.services.normalization import (
    SnippetFields,
    is_encrypted,
    normalize,
    normalize_set,
    slugify,
)

logger = logging.getLogger(__name__)

# Fields an owner may set directly; keywords and language_confidence are derived.
EDITABLE_FIELDS = frozenset(
    f.name for f in dataclasses.fields(SnippetFields)
) - {"keywords", "language_confidence"}


def parse_snippet_id(raw: str | uuid.UUID) -> uuid.UUID:
    """Parse a snippet id.

    Raises:
        MalformedIdError: If ``raw`` is not a UUID.
    """
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except (ValueError, TypeError, AttributeError) as e:
        raise MalformedIdError() from e


def _fields_from(snippet: Snippet) -> SnippetFields:
    return SnippetFields(
        **{f.name: getattr(snippet, f.name) for f in dataclasses.fields(SnippetFields)}
    )


def _apply(snippet: Snippet, fields: SnippetFields) -> None:
    for f in dataclasses.fields(SnippetFields):
        setattr(snippet, f.name, getattr(fields, f.name))


def can_view(snippet: Snippet, viewer_id: uuid.UUID | None) -> bool:
    """Public and unlisted snippets are readable by anyone; private by the owner only."""
    if snippet.visibility in ("public", "unlisted"):
        return True
    return viewer_id is not None and snippet.user_id == viewer_id


class SnippetService:
    """Service for managing code snippets."""

    def __init__(self, db: AsyncSession):
        """Initialize with database session.

        Args:
            db: Async SQLAlchemy session
        """
        self.db = db

    async def create(
        self,
        user_id: uuid.UUID,
        title: str,
        code: str,
        language: str | None = None,
        filename: str | None = None,
        **extra: Any,
    ) -> Snippet:
        """Create a new snippet.

        Args:
            user_id: Owner's user ID, fixed for the snippet's lifetime
            title: Snippet title (3-140 chars)
            code: The code content
            language: Declared language; classified from the code when omitted
            filename: Optional hint for the classifier
            **extra: Any other editable field (tags, visibility, encryption, ...)

        Returns:
            The created Snippet, still flagged ``needs_analysis`` unless encrypted

        Raises:
            SnippetValidationError: If any field fails validation
        """
        unknown = set(extra) - EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown snippet fields: {', '.join(sorted(unknown))}")

        values = {k: v for k, v in extra.items() if v is not None}
        fields = normalize(
            SnippetFields(title=title, code=code, language=language, **values),
            filename=filename,
        )

        snippet = Snippet(user_id=user_id)
        _apply(snippet, fields)
        # Ciphertext never goes to the AI backend
        snippet.needs_analysis = not is_encrypted(fields.encryption)

        self.db.add(snippet)
        await self.db.flush()
        await self.db.refresh(snippet)
        logger.info(
            f"Created snippet {snippet.id} for user {user_id}",
            extra={"language": snippet.language, "visibility": snippet.visibility},
        )
        return snippet

    async def get_by_id(self, snippet_id: str | uuid.UUID) -> Snippet:
        """Get a snippet by id regardless of owner.

        Raises:
            MalformedIdError: If the id does not parse
            SnippetNotFoundError: If no snippet has this id
        """
        query = select(Snippet).where(Snippet.id == parse_snippet_id(snippet_id))
        result = await self.db.execute(query)
        snippet = result.scalar_one_or_none()
        if snippet is None:
            raise SnippetNotFoundError()
        return snippet

    async def _get_owned(self, snippet_id: str | uuid.UUID, user_id: uuid.UUID) -> Snippet:
        snippet = await self.get_by_id(snippet_id)
        if snippet.user_id != user_id:
            logger.warning(
                f"User {user_id} attempted to modify snippet {snippet.id}",
                extra={"owner_id": str(snippet.user_id)},
            )
            raise SnippetAccessDeniedError()
        return snippet

    async def get_for_viewer(
        self,
        snippet_id: str | uuid.UUID,
        viewer_id: uuid.UUID | None,
    ) -> Snippet:
        """Load a snippet for display, counting the view for non-owners.

        The increment is read-modify-write on the loaded row, so concurrent
        viewers may lose increments.

        Raises:
            MalformedIdError, SnippetNotFoundError, SnippetAccessDeniedError
        """
        snippet = await self.get_by_id(snippet_id)
        if not can_view(snippet, viewer_id):
            raise SnippetAccessDeniedError()

        if snippet.user_id != viewer_id:
            snippet.views = (snippet.views or 0) + 1
            await self.db.flush()
            await self.db.refresh(snippet)
        return snippet

    async def record_copy(
        self,
        snippet_id: str | uuid.UUID,
        viewer_id: uuid.UUID | None,
    ) -> Snippet:
        """Record that a viewer copied the snippet's code."""
        snippet = await self.get_by_id(snippet_id)
        if not can_view(snippet, viewer_id):
            raise SnippetAccessDeniedError()

        snippet.copied = (snippet.copied or 0) + 1
        await self.db.flush()
        await self.db.refresh(snippet)
        return snippet

    async def update(
        self,
        snippet_id: str | uuid.UUID,
        user_id: uuid.UUID,
        changes: dict[str, Any],
        filename: str | None = None,
    ) -> Snippet:
        """Apply owner edits and re-run normalization over the merged state.

        Args:
            snippet_id: Raw snippet id
            user_id: Requesting user; must be the owner
            changes: Field values to set (only keys present are changed)
            filename: Optional classifier hint when language is cleared

        Returns:
            The updated Snippet

        Raises:
            MalformedIdError, SnippetNotFoundError, SnippetAccessDeniedError,
            SnippetValidationError
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown snippet fields: {', '.join(sorted(unknown))}")

        snippet = await self._get_owned(snippet_id, user_id)

        fields = _fields_from(snippet)
        for name, value in changes.items():
            if name in ("tags", "frameworks", "topics", "libraries") and value is None:
                value = []
            setattr(fields, name, value)
        if "language" in changes:
            fields.language_confidence = None

        normalize(fields, filename=filename)
        _apply(snippet, fields)
        if is_encrypted(fields.encryption):
            snippet.needs_analysis = False

        await self.db.flush()
        await self.db.refresh(snippet)
        logger.info(f"Updated snippet {snippet.id}", extra={"fields": sorted(changes)})
        return snippet

    async def delete(self, snippet_id: str | uuid.UUID, user_id: uuid.UUID) -> uuid.UUID:
        """Delete a snippet owned by ``user_id`` and return its id."""
        snippet = await self._get_owned(snippet_id, user_id)
        await self.db.delete(snippet)
        await self.db.flush()
        logger.info(f"Deleted snippet {snippet.id}")
        return snippet.id

    async def list_mine(
        self,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
        archived: bool = False,
        pinned: bool | None = None,
        language: str | None = None,
        tags: list[str] | None = None,
    ) -> tuple[list[Snippet], int]:
        """List the owner's snippets, pinned first then newest first.

        Args:
            user_id: Owner's user ID
            page: 1-based page number
            limit: Page size
            archived: Return archived snippets instead of active ones
            pinned: Only pinned (True) or unpinned (False) snippets
            language: Language slug filter
            tags: Any of these tags

        Returns:
            (snippets on the page, total matching)
        """
        conditions = [Snippet.user_id == user_id, Snippet.is_archived.is_(archived)]
        if pinned is not None:
            conditions.append(Snippet.pinned.is_(pinned))
        if language:
            conditions.append(Snippet.language == slugify(language))
        if tags:
            conditions.append(Snippet.tags.overlap(normalize_set(tags)))

        count_query = select(func.count()).select_from(Snippet).where(*conditions)
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Snippet)
            .where(*conditions)
            .order_by(Snippet.pinned.desc(), Snippet.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

"""Snippet model - code snippets with taxonomy, engagement and enrichment state.

Taxonomy sets are Postgres text arrays with GIN indexes so that
containment (``@>``) and overlap (``&&``) filters are index-backed.
``search_vector`` is a generated, weighted tsvector over title (A) and
summary (B).
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Computed,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    desc,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TSVECTOR, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.models.base import Base, TimestampMixin

CATEGORIES = (
    "web-development",
    "mobile-development",
    "data-science",
    "algorithms",
    "devops",
    "api",
    "database",
    "testing",
    "ui-components",
    "utilities",
    "other",
)
DOMAINS = (
    "frontend",
    "backend",
    "fullstack",
    "mobile",
    "desktop",
    "embedded",
    "data",
    "ml-ai",
    "devops",
    "testing",
    "other",
)
COMPLEXITIES = ("beginner", "intermediate", "advanced", "expert")
VISIBILITIES = ("private", "public", "unlisted")

LANGUAGE_MAX_CHARS = 50
# Element length of the tags, frameworks, topics, libraries and keywords arrays
ITEM_MAX_CHARS = 100

SEARCH_VECTOR_SQL = (
    "setweight(to_tsvector('english', coalesce(title, '')), 'A') || "
    "setweight(to_tsvector('english', coalesce(summary, '')), 'B')"
)


def _text_array():
    return ARRAY(String(ITEM_MAX_CHARS))


class Snippet(Base, TimestampMixin):
    """Code snippet with metadata.

    Attributes:
        id: UUID primary key
        user_id: Owner, set once at creation
        title: 3-140 characters
        code: The code content
        language: Language slug, filled by the classifier when absent
        language_confidence: Classifier confidence (1.0 when declared)
        tags / frameworks / topics / libraries: Slug sets
        keywords: Derived search tokens, recomputed on every save
        visibility: private, public or unlisted
        views / copied / stars / favorites_count: Lifetime counters
        ai_metadata: Generated description, summary and confidence
        code_analysis: Static structure facts
        quality_*: Heuristic quality scores (0-10)
        needs_analysis: True until the one enrichment pass completes
        processing_errors: Enrichment steps that fell back
        encryption: Optional client-side ciphertext bundle
    """

    __tablename__ = "snippets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(140), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(LANGUAGE_MAX_CHARS), nullable=False, index=True)
    language_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    summary: Mapped[str | None] = mapped_column(String(280), nullable=True)
    documentation: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    tags: Mapped[list[str]] = mapped_column(_text_array(), nullable=False, default=list)
    frameworks: Mapped[list[str]] = mapped_column(_text_array(), nullable=False, default=list)
    topics: Mapped[list[str]] = mapped_column(_text_array(), nullable=False, default=list)
    libraries: Mapped[list[str]] = mapped_column(_text_array(), nullable=False, default=list)
    keywords: Mapped[list[str]] = mapped_column(_text_array(), nullable=False, default=list)

    category: Mapped[str] = mapped_column(String(40), nullable=False, default="other")
    domain: Mapped[str] = mapped_column(String(40), nullable=False, default="other")
    complexity: Mapped[str] = mapped_column(String(20), nullable=False, default="beginner")
    visibility: Mapped[str] = mapped_column(
        String(20), nullable=False, default="private", index=True
    )
    pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    copied: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stars: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    favorites_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    ai_metadata: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    code_analysis: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    quality_readability: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quality_security: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quality_performance: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quality_maintainability: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quality_overall: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_analyzed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    needs_analysis: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    processing_errors: Mapped[list[str]] = mapped_column(
        _text_array(), nullable=False, default=list
    )
    encryption: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    search_vector = mapped_column(
        TSVECTOR,
        Computed(SEARCH_VECTOR_SQL, persisted=True),
        nullable=True,
        deferred=True,
    )

    __table_args__ = (
        Index("ix_snippets_tags", "tags", postgresql_using="gin"),
        Index("ix_snippets_frameworks", "frameworks", postgresql_using="gin"),
        Index("ix_snippets_topics", "topics", postgresql_using="gin"),
        Index("ix_snippets_search_vector", "search_vector", postgresql_using="gin"),
        Index(
            "ix_snippets_user_pinned_created",
            "user_id",
            desc("pinned"),
            desc("created_at"),
        ),
        Index("ix_snippets_visibility_created", "visibility", desc("created_at")),
        Index(
            "ix_snippets_needs_analysis",
            "needs_analysis",
            "created_at",
            postgresql_where="needs_analysis",
        ),
    )

    owner: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="snippets",
        lazy="noload",
    )

    @property
    def is_encrypted(self) -> bool:
        return bool((self.encryption or {}).get("encryptedContent"))

    @property
    def quality(self) -> dict | None:
        if self.quality_overall is None:
            return None
        return {
            "readability": self.quality_readability,
            "security": self.quality_security,
            "performance": self.quality_performance,
            "maintainability": self.quality_maintainability,
            "overall": self.quality_overall,
            "last_analyzed": self.last_analyzed,
        }

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title={self.title})>"

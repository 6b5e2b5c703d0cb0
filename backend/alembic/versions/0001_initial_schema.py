"""Initial schema - users and snippets

Revision ID: 0001_initial_schema
Revises: None
Create Date: 2026-10-19

- users table: owners synced from verified bearer tokens
- snippets table: code, taxonomy arrays (GIN), generated weighted
  tsvector for text search, engagement counters, enrichment state
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

SEARCH_VECTOR_SQL = (
    "setweight(to_tsvector('english', coalesce(title, '')), 'A') || "
    "setweight(to_tsvector('english', coalesce(summary, '')), 'B')"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _text_array(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.ARRAY(sa.String(100)),
        nullable=False,
        server_default="{}",
    )


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def upgrade() -> None:
    """Create initial tables."""
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "subject",
            sa.String(255),
            nullable=False,
            unique=True,
            comment="Identity provider subject (sub claim)",
        ),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_subject", "users", ["subject"])
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "snippets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(140), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("language", sa.String(50), nullable=False),
        sa.Column("language_confidence", sa.Float(), nullable=False, server_default="1.0"),
        sa.Column("summary", sa.String(280), nullable=True),
        sa.Column("documentation", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _text_array("tags"),
        _text_array("frameworks"),
        _text_array("topics"),
        _text_array("libraries"),
        _text_array("keywords"),
        sa.Column("category", sa.String(40), nullable=False, server_default="other"),
        sa.Column("domain", sa.String(40), nullable=False, server_default="other"),
        sa.Column("complexity", sa.String(20), nullable=False, server_default="beginner"),
        sa.Column("visibility", sa.String(20), nullable=False, server_default="private"),
        sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        _counter("views"),
        _counter("copied"),
        _counter("stars"),
        _counter("favorites_count"),
        sa.Column("ai_metadata", postgresql.JSONB(), nullable=True),
        sa.Column("code_analysis", postgresql.JSONB(), nullable=True),
        sa.Column("quality_readability", sa.Integer(), nullable=True),
        sa.Column("quality_security", sa.Integer(), nullable=True),
        sa.Column("quality_performance", sa.Integer(), nullable=True),
        sa.Column("quality_maintainability", sa.Integer(), nullable=True),
        sa.Column("quality_overall", sa.Integer(), nullable=True),
        sa.Column("last_analyzed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("needs_analysis", sa.Boolean(), nullable=False, server_default=sa.true()),
        _text_array("processing_errors"),
        sa.Column("encryption", postgresql.JSONB(), nullable=True),
        sa.Column(
            "search_vector",
            postgresql.TSVECTOR(),
            sa.Computed(SEARCH_VECTOR_SQL, persisted=True),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "visibility IN ('private', 'public', 'unlisted')",
            name="ck_snippets_visibility",
        ),
        sa.CheckConstraint(
            "views >= 0 AND copied >= 0 AND stars >= 0 AND favorites_count >= 0",
            name="ck_snippets_counters_non_negative",
        ),
    )
    op.create_index("ix_snippets_user_id", "snippets", ["user_id"])
    op.create_index("ix_snippets_language", "snippets", ["language"])
    op.create_index("ix_snippets_visibility", "snippets", ["visibility"])
    for column in ("tags", "frameworks", "topics", "search_vector"):
        op.create_index(
            f"ix_snippets_{column}",
            "snippets",
            [column],
            postgresql_using="gin",
        )
    op.create_index(
        "ix_snippets_user_pinned_created",
        "snippets",
        ["user_id", sa.text("pinned DESC"), sa.text("created_at DESC")],
    )
    op.create_index(
        "ix_snippets_visibility_created",
        "snippets",
        ["visibility", sa.text("created_at DESC")],
    )
    op.create_index(
        "ix_snippets_needs_analysis",
        "snippets",
        ["needs_analysis", "created_at"],
        postgresql_where=sa.text("needs_analysis"),
    )


def downgrade() -> None:
    """Drop tables."""
    op.drop_table("snippets")
    op.drop_table("users")

"""User model - snippet owners, synced from verified bearer tokens.

A row is created on the first authenticated request of a token subject.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Snippet owner.

    Attributes:
        id: Internal UUID primary key, referenced by snippets
        subject: Identity provider subject (``sub`` claim)
        email: Email from the token, may be empty
        username: Display name, denormalized into trending results
        last_login: Timestamp of last API access
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    subject: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Identity provider subject (sub claim)",
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        index=True,
        nullable=True,
    )
    username: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    snippets: Mapped[list["Snippet"]] = relationship(  # noqa: F821
        "Snippet",
        back_populates="owner",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"

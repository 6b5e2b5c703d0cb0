"""User service - sync token subjects to PostgreSQL.

Handles user creation/update on first API interaction after token
verification, so snippets can reference a local UUID.
"""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.models import User

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing owner records synced from verified tokens."""

    def __init__(self, db: AsyncSession):
        """Initialize with database session.

        Args:
            db: Async SQLAlchemy session
        """
        self.db = db

    async def get_or_create_from_token(
        self,
        subject: str,
        email: str | None = None,
        username: str | None = None,
    ) -> User:
        """Get existing user or create one from token claims.

        Updates last_login on every call.

        Args:
            subject: Token ``sub`` claim
            email: Email claim, if any
            username: Preferred username claim, if any

        Returns:
            The User record (existing or newly created)
        """
        user = await self.get_by_subject(subject)

        if user is None:
            user = User(
                subject=subject,
                email=email,
                username=username or (email.split("@")[0] if email else subject),
            )
            self.db.add(user)
            logger.info(f"Created new user for subject {subject}")
        elif email and user.email != email:
            user.email = email
            logger.info(f"Updated email for user {user.id}")

        user.last_login = datetime.now(UTC)

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def get_by_subject(self, subject: str) -> User | None:
        query = select(User).where(User.subject == subject)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: uuid.UUID) -> User | None:
        query = select(User).where(User.id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

"""Trending service - popularity ranking over a recent creation window.

Candidates are public snippets created inside the timeframe; the score
uses lifetime engagement counters, not activity inside the window.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.models import Snippet, User
from api.services.errors import FieldError, SnippetValidationError
from api.services.normalization import slugify

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS = {"24h": 1, "7d": 7, "30d": 30}
DEFAULT_TIMEFRAME = "7d"

VIEW_WEIGHT = 1
COPY_WEIGHT = 3
STAR_WEIGHT = 5


def trending_score(views: int, copied: int, stars: int) -> int:
    return views * VIEW_WEIGHT + copied * COPY_WEIGHT + stars * STAR_WEIGHT


def timeframe_days(timeframe: str) -> int:
    """Map a timeframe label to its window in days.

    Raises:
        SnippetValidationError: On an unknown label.
    """
    try:
        return TIMEFRAME_DAYS[timeframe]
    except KeyError:
        raise SnippetValidationError(
            [FieldError("timeframe", f"timeframe must be one of: {', '.join(TIMEFRAME_DAYS)}")]
        ) from None


def score_expression():
    return (
        Snippet.views * VIEW_WEIGHT
        + Snippet.copied * COPY_WEIGHT
        + Snippet.stars * STAR_WEIGHT
    ).label("score")


@dataclass
class TrendingItem:
    snippet: Snippet
    score: int
    owner_id: uuid.UUID
    owner_username: str | None


def build_trending_query(
    timeframe: str,
    category: str | None = None,
    language: str | None = None,
    limit: int = 10,
    now: datetime | None = None,
) -> Select:
    since = (now or datetime.now(UTC)) - timedelta(days=timeframe_days(timeframe))
    score = score_expression()

    query = (
        select(Snippet, score, User.username)
        .join(User, User.id == Snippet.user_id)
        .where(Snippet.visibility == "public", Snippet.created_at >= since)
    )
    if category:
        query = query.where(Snippet.category == slugify(category))
    if language:
        query = query.where(Snippet.language == slugify(language))

    return query.order_by(score.desc(), Snippet.created_at.desc()).limit(limit)


class TrendingRanker:
    """Ranks recently created public snippets by engagement."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def trending(
        self,
        timeframe: str = DEFAULT_TIMEFRAME,
        category: str | None = None,
        language: str | None = None,
        limit: int = 10,
    ) -> list[TrendingItem]:
        query = build_trending_query(timeframe, category, language, limit)
        result = await self.db.execute(query)

        items = [
            TrendingItem(
                snippet=snippet,
                score=score,
                owner_id=snippet.user_id,
                owner_username=username,
            )
            for snippet, score, username in result.all()
        ]
        logger.info(
            f"Trending computed for {timeframe}",
            extra={"count": len(items), "category": category, "language": language},
        )
        return items

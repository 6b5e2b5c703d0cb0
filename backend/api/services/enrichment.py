"""Background enrichment of newly created snippets.

A job runs once per snippet, after the create transaction has committed:

1. load a snapshot of the snippet and release the session,
2. run the AI and static steps concurrently, each guarded on its own,
3. merge results into the snapshot and write them in a single UPDATE
   that also clears ``needs_analysis``.

Readers therefore see either the pre-enrichment row or the fully
enriched one. Jobs are at-most-once: a job lost to a crash or a full
queue leaves ``needs_analysis`` set, which ``count_stale`` reports.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from analyzer import quality, static
from analyzer.generators import AIContentGenerator
from analyzer.providers import get_gemini_gateway
from api.models import Snippet
from api.services.database import get_session_factory
from api.services.normalization import (
    MAX_FRAMEWORKS,
    MAX_TAGS,
    SUMMARY_MAX_CHARS,
    build_keywords,
    fit_items,
    normalize_set,
)
from common.config import settings

logger = logging.getLogger(__name__)

STEP_METADATA = "metadata"
STEP_TAGS = "tags"
STEP_FRAMEWORKS = "frameworks"
STEP_LIBRARIES = "libraries"
STEP_CODE_ANALYSIS = "code_analysis"
STEP_QUALITY = "quality"


@dataclass(frozen=True)
class EnrichmentSnapshot:
    """Snippet state captured when the job starts."""

    id: uuid.UUID
    title: str
    code: str
    language: str | None
    summary: str | None = None
    tags: tuple[str, ...] = ()
    frameworks: tuple[str, ...] = ()
    topics: tuple[str, ...] = ()
    libraries: tuple[str, ...] = ()

    @classmethod
    def from_snippet(cls, snippet: Snippet) -> "EnrichmentSnapshot":
        return cls(
            id=snippet.id,
            title=snippet.title,
            code=snippet.code,
            language=snippet.language,
            summary=snippet.summary,
            tags=tuple(snippet.tags or ()),
            frameworks=tuple(snippet.frameworks or ()),
            topics=tuple(snippet.topics or ()),
            libraries=tuple(snippet.libraries or ()),
        )


@dataclass
class EnrichmentOutcome:
    """Column values to write plus the steps that fell back."""

    values: dict[str, Any] = field(default_factory=dict)
    degraded_steps: list[str] = field(default_factory=list)


def _union(existing: tuple[str, ...], detected: list[str], cap: int | None = None) -> list[str]:
    merged = list(dict.fromkeys([*existing, *detected]))
    return merged[:cap] if cap is not None else merged


async def _call(fn: Callable, *args):
    return fn(*args)


class EnrichmentOrchestrator:
    """Runs the enrichment steps for one snippet and persists the merge."""

    def __init__(
        self,
        generator: AIContentGenerator,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.generator = generator
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def run(self, snippet_id: uuid.UUID) -> EnrichmentOutcome | None:
        """Enrich one snippet end to end.

        Returns:
            The written outcome, or None when there was nothing to do.
        """
        async with self.session_factory() as db:
            result = await db.execute(select(Snippet).where(Snippet.id == snippet_id))
            snippet = result.scalar_one_or_none()
            if snippet is None:
                logger.warning(f"Snippet {snippet_id} vanished before enrichment")
                return None
            if not snippet.needs_analysis:
                logger.info(f"Snippet {snippet_id} already analyzed, skipping")
                return None
            if snippet.is_encrypted:
                # Encrypted after it was queued; ciphertext never goes to the AI backend
                snippet.needs_analysis = False
                await db.commit()
                logger.info(f"Snippet {snippet_id} is encrypted, skipping enrichment")
                return None
            snapshot = EnrichmentSnapshot.from_snippet(snippet)

        outcome = await self.enrich(snapshot)

        async with self.session_factory() as db:
            await db.execute(
                update(Snippet).where(Snippet.id == snapshot.id).values(**outcome.values)
            )
            await db.commit()

        logger.info(
            f"Enriched snippet {snippet_id}",
            extra={"degraded_steps": outcome.degraded_steps},
        )
        return outcome

    async def enrich(self, snapshot: EnrichmentSnapshot) -> EnrichmentOutcome:
        """Run all steps concurrently and merge them into column values."""
        code, language = snapshot.code, snapshot.language
        steps = {
            STEP_METADATA: self.generator.generate_metadata(code, language),
            STEP_TAGS: self.generator.extract_tags(code, language),
            STEP_FRAMEWORKS: _call(static.detect_frameworks, code, language),
            STEP_LIBRARIES: _call(static.detect_libraries, code, language),
            STEP_CODE_ANALYSIS: _call(static.analyze_code, code, language),
            STEP_QUALITY: _call(quality.score, code, language),
        }
        settled = dict(zip(steps, await asyncio.gather(*steps.values(), return_exceptions=True)))

        outcome = EnrichmentOutcome()
        values = outcome.values

        def failed(step: str) -> bool:
            result = settled[step]
            if isinstance(result, BaseException):
                logger.error(
                    f"Enrichment step {step} failed for snippet {snapshot.id}: {result}",
                    exc_info=result,
                )
                outcome.degraded_steps.append(step)
                return True
            return False

        summary = snapshot.summary
        if not failed(STEP_METADATA):
            metadata = settled[STEP_METADATA]
            values["ai_metadata"] = metadata.as_dict()
            if metadata.degraded:
                outcome.degraded_steps.append(STEP_METADATA)
            elif not summary and metadata.summary:
                summary = metadata.summary[:SUMMARY_MAX_CHARS]
                values["summary"] = summary

        tags = list(snapshot.tags)
        if not failed(STEP_TAGS):
            extracted = settled[STEP_TAGS]
            if extracted.degraded:
                outcome.degraded_steps.append(STEP_TAGS)
            elif not tags:
                # User-supplied tags are authoritative
                tags = fit_items(normalize_set(extracted.value))[:MAX_TAGS]
                values["tags"] = tags

        frameworks = list(snapshot.frameworks)
        if not failed(STEP_FRAMEWORKS):
            frameworks = _union(
                snapshot.frameworks,
                fit_items(normalize_set(settled[STEP_FRAMEWORKS])),
                MAX_FRAMEWORKS,
            )
            values["frameworks"] = frameworks

        if not failed(STEP_LIBRARIES):
            values["libraries"] = _union(snapshot.libraries, fit_items(settled[STEP_LIBRARIES]))

        if not failed(STEP_CODE_ANALYSIS):
            values["code_analysis"] = settled[STEP_CODE_ANALYSIS].as_dict()

        if not failed(STEP_QUALITY):
            for name, value in settled[STEP_QUALITY].as_dict().items():
                values[f"quality_{name}"] = value

        values["keywords"] = build_keywords(
            snapshot.title, summary, tags, frameworks, snapshot.topics
        )
        values["needs_analysis"] = False
        values["last_analyzed"] = datetime.now(UTC)
        values["processing_errors"] = outcome.degraded_steps
        return outcome


async def count_stale(db: AsyncSession, stale_minutes: int | None = None) -> int:
    """Snippets still awaiting enrichment longer than ``stale_minutes``."""
    minutes = stale_minutes if stale_minutes is not None else settings.enrichment_stale_minutes
    cutoff = datetime.now(UTC) - timedelta(minutes=minutes)
    query = (
        select(func.count())
        .select_from(Snippet)
        .where(Snippet.needs_analysis.is_(True), Snippet.created_at < cutoff)
    )
    return (await db.execute(query)).scalar() or 0


class EnrichmentWorkerPool:
    """Bounded queue drained by a fixed number of worker tasks.

    ``submit`` never blocks; when the queue is full the job is dropped and
    the snippet keeps ``needs_analysis`` set.
    """

    def __init__(
        self,
        orchestrator: EnrichmentOrchestrator,
        workers: int | None = None,
        queue_size: int | None = None,
    ):
        self.orchestrator = orchestrator
        self.workers = workers or settings.enrichment_workers
        self.queue: asyncio.Queue[uuid.UUID] = asyncio.Queue(
            maxsize=queue_size or settings.enrichment_queue_size
        )
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    @property
    def queue_depth(self) -> int:
        return self.queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"enrichment-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info(
            f"Started {self.workers} enrichment workers",
            extra={"queue_size": self.queue.maxsize},
        )

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        dropped = self.queue_depth
        # A queue is bound to the loop that first waited on it
        self.queue = asyncio.Queue(maxsize=self.queue.maxsize)
        if dropped:
            logger.warning(
                f"Enrichment pool stopped with {dropped} jobs queued; "
                "those snippets stay pending"
            )

    def submit(self, snippet_id: uuid.UUID) -> bool:
        """Queue a snippet for enrichment.

        Returns:
            False if the queue is full and the job was rejected.
        """
        try:
            self.queue.put_nowait(snippet_id)
        except asyncio.QueueFull:
            logger.warning(
                f"Enrichment queue full, snippet {snippet_id} left pending",
                extra={"queue_depth": self.queue_depth},
            )
            return False
        return True

    async def _worker(self, index: int) -> None:
        while True:
            snippet_id = await self.queue.get()
            try:
                await self.orchestrator.run(snippet_id)
            except Exception as e:
                logger.error(
                    f"Enrichment job for snippet {snippet_id} failed: {e}",
                    exc_info=True,
                    extra={"worker": index},
                )
            finally:
                self.queue.task_done()


# Singleton instance
_pool: EnrichmentWorkerPool | None = None


def get_enrichment_pool() -> EnrichmentWorkerPool:
    """Get or create the enrichment worker pool singleton."""
    global _pool
    if _pool is None:
        generator = AIContentGenerator(get_gemini_gateway())
        _pool = EnrichmentWorkerPool(EnrichmentOrchestrator(generator))
    return _pool

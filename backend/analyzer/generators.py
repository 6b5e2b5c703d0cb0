"""AI-backed content generators with deterministic fallbacks.

Every generator catches :class:`AIServiceUnavailableError` locally and
returns an :class:`AIResult` marked ``degraded`` instead of raising, so
callers never see gateway failures.
"""

import asyncio
import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path

from analyzer.llm_provider import (
    DEGRADED_CONFIDENCE,
    NOMINAL_CONFIDENCE,
    AIGateway,
    AIMetadata,
    AIResult,
    AIServiceUnavailableError,
)

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"

MAX_DESCRIPTION_CHARS = 500
MAX_SUMMARY_CHARS = 280
MAX_EXPLANATION_CHARS = 2000
MAX_EXTRACTED_TAGS = 15

DESCRIPTION_TEMPERATURE = 0.3
SUMMARY_TEMPERATURE = 0.2
EXPLANATION_TEMPERATURE = 0.4
TAGS_TEMPERATURE = 0.1

# Greedy: from the first "[" to the last "]", across lines.
_JSON_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


def _language_label(language: str | None) -> str:
    return language or "code"


def _clip(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def parse_tag_array(text: str) -> list[str]:
    """Pull a JSON array of strings out of free-form model text.

    Returns an empty list when no parseable array is present.
    """
    match = _JSON_ARRAY_RE.search(text or "")
    if not match:
        return []
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.debug("Tag extraction returned an unparseable array", extra={"raw": text[:200]})
        return []
    if not isinstance(data, list):
        return []
    return [item.strip() for item in data if isinstance(item, str) and item.strip()]


class AIContentGenerator:
    """Prompts the gateway for snippet descriptions, summaries and tags."""

    def __init__(self, gateway: AIGateway):
        self.gateway = gateway
        self._templates: dict[str, str] = {}

    def _prompt(self, name: str, **values) -> str:
        if name not in self._templates:
            self._templates[name] = (PROMPTS_DIR / f"{name}.txt").read_text(encoding="utf-8")
        return self._templates[name].format(**values)

    async def generate_description(self, code: str, language: str | None) -> AIResult[str]:
        label = _language_label(language)
        prompt = self._prompt("description", language=label, code=code)
        try:
            text = await self.gateway.generate(prompt, DESCRIPTION_TEMPERATURE)
            return AIResult.ok(_clip(text, MAX_DESCRIPTION_CHARS))
        except AIServiceUnavailableError as e:
            logger.warning(f"Description generation degraded: {e}")
            return AIResult.fallback(
                f"This {label} snippet performs a specific operation. "
                "(AI analysis temporarily unavailable)"
            )

    async def generate_summary(self, code: str, language: str | None) -> AIResult[str]:
        label = _language_label(language)
        prompt = self._prompt("summary", language=label, code=code)
        try:
            text = await self.gateway.generate(prompt, SUMMARY_TEMPERATURE)
            return AIResult.ok(_clip(text, MAX_SUMMARY_CHARS))
        except AIServiceUnavailableError as e:
            logger.warning(f"Summary generation degraded: {e}")
            return AIResult.fallback(f"{label} snippet for common programming task.")

    async def generate_explanation(self, code: str, language: str | None) -> AIResult[str]:
        label = _language_label(language)
        prompt = self._prompt("explanation", language=label, code=code)
        try:
            text = await self.gateway.generate(prompt, EXPLANATION_TEMPERATURE)
            return AIResult.ok(_clip(text, MAX_EXPLANATION_CHARS))
        except AIServiceUnavailableError as e:
            logger.warning(f"Explanation generation degraded: {e}")
            return AIResult.fallback(
                f"Detailed explanation temporarily unavailable for this {label} snippet."
            )

    async def generate_metadata(self, code: str, language: str | None) -> AIMetadata:
        """Generate description and summary concurrently."""
        description, summary = await asyncio.gather(
            self.generate_description(code, language),
            self.generate_summary(code, language),
        )
        degraded = description.degraded or summary.degraded
        return AIMetadata(
            description=description.value,
            summary=summary.value,
            generated_at=datetime.now(UTC),
            confidence=DEGRADED_CONFIDENCE if degraded else NOMINAL_CONFIDENCE,
            degraded=degraded,
        )

    async def extract_tags(self, code: str, language: str | None) -> AIResult[list[str]]:
        """Ask the model for tags and parse its answer defensively.

        An unparseable answer yields an empty, degraded result. A gateway
        failure yields the language itself as the only tag.
        """
        label = _language_label(language)
        prompt = self._prompt("tags", language=label, code=code, max_tags=MAX_EXTRACTED_TAGS)
        try:
            text = await self.gateway.generate(prompt, TAGS_TEMPERATURE)
        except AIServiceUnavailableError as e:
            logger.warning(f"Tag extraction degraded: {e}")
            return AIResult.fallback([label])

        tags = parse_tag_array(text)[:MAX_EXTRACTED_TAGS]
        if not tags:
            return AIResult.fallback([])
        return AIResult.ok(tags)

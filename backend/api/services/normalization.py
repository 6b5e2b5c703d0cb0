"""Normalization and validation of snippet fields before persistence.

Runs on every create and update over the full (merged) field state:

* slug-normalizes language and the taxonomy sets,
* enforces size caps on the normalized sets and field length limits,
* recomputes ``keywords`` from scratch,
* coerces ``public`` to ``private`` when the snippet carries ciphertext,
* fills ``language`` through the classifier when none was declared.

Validation failures are collected and raised together, so a rejected
write is never partially applied.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from analyzer.language import classify
from api.models.snippet import (
    CATEGORIES,
    COMPLEXITIES,
    DOMAINS,
    ITEM_MAX_CHARS,
    LANGUAGE_MAX_CHARS,
    VISIBILITIES,
)
from api.services.errors import FieldError, SnippetValidationError

logger = logging.getLogger(__name__)

MAX_TAGS = 20
MAX_FRAMEWORKS = 15
MAX_TOPICS = 10

TITLE_MIN_CHARS = 3
TITLE_MAX_CHARS = 140
SUMMARY_MAX_CHARS = 280
DOCUMENTATION_MAX_CHARS = 3000
NOTES_MAX_CHARS = 1000

SET_CAPS = {
    "tags": MAX_TAGS,
    "frameworks": MAX_FRAMEWORKS,
    "topics": MAX_TOPICS,
}

ENUM_FIELDS = {
    "category": CATEGORIES,
    "domain": DOMAINS,
    "complexity": COMPLEXITIES,
    "visibility": VISIBILITIES,
}

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9-]")
_HYPHENS_RE = re.compile(r"-{2,}")


def slugify(value: str | None) -> str:
    """Canonical slug form; idempotent and total."""
    if not value:
        return ""
    slug = _WHITESPACE_RE.sub("-", value.strip().lower())
    slug = _DISALLOWED_RE.sub("", slug)
    slug = _HYPHENS_RE.sub("-", slug)
    return slug.strip("-")


def normalize_set(values: Iterable[str] | None) -> list[str]:
    """Slugify each value, drop empties and dedupe (first occurrence wins)."""
    if not values:
        return []
    return list(dict.fromkeys(s for s in (slugify(v) for v in values) if s))


def build_keywords(
    title: str | None,
    summary: str | None,
    tags: Iterable[str] = (),
    frameworks: Iterable[str] = (),
    topics: Iterable[str] = (),
) -> list[str]:
    """Derived search tokens: whitespace tokens of title and summary plus the taxonomy sets."""
    tokens: list[str] = []
    for text in (title, summary):
        if text:
            tokens.extend(text.split())
    tokens.extend(tags)
    tokens.extend(frameworks)
    tokens.extend(topics)
    return [k for k in normalize_set(tokens) if len(k) <= ITEM_MAX_CHARS]


def fit_items(values: Iterable[str]) -> list[str]:
    """Drop values longer than an array element can hold."""
    return [v for v in values if len(v) <= ITEM_MAX_CHARS]


def is_encrypted(encryption: dict | None) -> bool:
    return bool((encryption or {}).get("encryptedContent"))


@dataclass
class SnippetFields:
    """Mutable field state that the pipeline normalizes in place."""

    title: str | None = None
    code: str | None = None
    language: str | None = None
    language_confidence: float | None = None
    summary: str | None = None
    documentation: str | None = None
    notes: str | None = None
    tags: list[str] = field(default_factory=list)
    frameworks: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    libraries: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    category: str = "other"
    domain: str = "other"
    complexity: str = "beginner"
    visibility: str = "private"
    pinned: bool = False
    is_archived: bool = False
    encryption: dict | None = None


def _check_length(
    errors: list[FieldError], name: str, value: str | None, limit: int
) -> None:
    if value is not None and len(value) > limit:
        errors.append(FieldError(name, f"{name} must be at most {limit} characters"))


def normalize(fields: SnippetFields, filename: str | None = None) -> SnippetFields:
    """Normalize and validate ``fields`` in place.

    Raises:
        SnippetValidationError: listing every offending field.
    """
    errors: list[FieldError] = []

    fields.title = (fields.title or "").strip()
    if not fields.title:
        errors.append(FieldError("title", "title is required"))
    elif not TITLE_MIN_CHARS <= len(fields.title) <= TITLE_MAX_CHARS:
        errors.append(
            FieldError(
                "title",
                f"title must be between {TITLE_MIN_CHARS} and {TITLE_MAX_CHARS} characters",
            )
        )

    if not fields.code or not fields.code.strip():
        errors.append(FieldError("code", "code is required"))

    if fields.summary is not None:
        fields.summary = fields.summary.strip() or None
    _check_length(errors, "summary", fields.summary, SUMMARY_MAX_CHARS)
    _check_length(errors, "documentation", fields.documentation, DOCUMENTATION_MAX_CHARS)
    _check_length(errors, "notes", fields.notes, NOTES_MAX_CHARS)

    fields.tags = normalize_set(fields.tags)
    fields.frameworks = normalize_set(fields.frameworks)
    fields.topics = normalize_set(fields.topics)
    # Library names keep their case and scope (e.g. "@angular/core")
    fields.libraries = list(
        dict.fromkeys(v.strip() for v in fields.libraries or [] if v and v.strip())
    )

    for name, cap in SET_CAPS.items():
        if len(getattr(fields, name)) > cap:
            errors.append(FieldError(name, f"{name} cannot exceed {cap} items"))

    for name in ("tags", "frameworks", "topics", "libraries"):
        if any(len(v) > ITEM_MAX_CHARS for v in getattr(fields, name)):
            errors.append(
                FieldError(name, f"each {name} entry must be at most {ITEM_MAX_CHARS} characters")
            )

    language = slugify(fields.language)
    if len(language) > LANGUAGE_MAX_CHARS:
        errors.append(
            FieldError("language", f"language must be at most {LANGUAGE_MAX_CHARS} characters")
        )

    for name, allowed in ENUM_FIELDS.items():
        value = getattr(fields, name)
        if value not in allowed:
            errors.append(
                FieldError(name, f"{name} must be one of: {', '.join(allowed)}")
            )

    if errors:
        raise SnippetValidationError(errors)

    if language:
        # None means the caller declared it; keep a stored classifier confidence otherwise
        if fields.language_confidence is None:
            fields.language_confidence = 1.0
        fields.language = language
    else:
        result = classify(fields.code, filename)
        fields.language = result.language
        fields.language_confidence = result.confidence
        logger.debug(
            f"Classified snippet as {result.language}",
            extra={"confidence": result.confidence, "filename": filename},
        )

    fields.keywords = build_keywords(
        fields.title, fields.summary, fields.tags, fields.frameworks, fields.topics
    )

    if fields.visibility == "public" and is_encrypted(fields.encryption):
        logger.info("Encrypted snippet requested public visibility, storing as private")
        fields.visibility = "private"

    return fields

"""Heuristic code quality scoring.

Deterministic and side-effect free: the same code always yields the
same metrics. All scores are integers in [0, 10].
"""

import math
import re
from dataclasses import asdict, dataclass

MAX_SCORE = 10
LONG_CODE_THRESHOLD = 2000

_COMMENT_RE = re.compile(r"//|/\*|#")
_SINGLE_LETTER_RE = re.compile(r"\b[a-z]\b", re.ASCII)
_ERROR_HANDLING_RE = re.compile(r"try|catch|except|error|Error")


@dataclass(frozen=True)
class QualityScore:
    """Quality sub-scores and their rounded mean."""

    readability: int
    security: int
    performance: int
    maintainability: int
    overall: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class QualitySignals:
    """Boolean signals the scores are derived from."""

    has_comments: bool
    has_proper_indentation: bool
    has_descriptive_names: bool
    is_not_too_long: bool
    has_error_handling: bool


def detect_signals(code: str) -> QualitySignals:
    code = code or ""
    return QualitySignals(
        has_comments=bool(_COMMENT_RE.search(code)),
        has_proper_indentation="  " in code or "\t" in code,
        has_descriptive_names=not _SINGLE_LETTER_RE.search(code),
        is_not_too_long=len(code) < LONG_CODE_THRESHOLD,
        has_error_handling=bool(_ERROR_HANDLING_RE.search(code)),
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score(code: str, language: str | None = None) -> QualityScore:
    """Score a snippet.

    ``language`` is accepted for interface symmetry with the other
    analyzers; the heuristics are language-agnostic.
    """
    signals = detect_signals(code)

    readability = min(
        MAX_SCORE,
        5
        + 2 * signals.has_comments
        + 2 * signals.has_proper_indentation
        + 1 * signals.has_descriptive_names,
    )
    maintainability = min(
        MAX_SCORE,
        4
        + 3 * signals.has_comments
        + 2 * signals.is_not_too_long
        + 1 * signals.has_descriptive_names,
    )
    security = 7 if signals.has_error_handling else 5
    performance = 7 if signals.is_not_too_long else 4

    overall = _round_half_up((readability + security + performance + maintainability) / 4)

    return QualityScore(
        readability=readability,
        security=security,
        performance=performance,
        maintainability=maintainability,
        overall=min(MAX_SCORE, overall),
    )

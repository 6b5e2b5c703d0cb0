"""Pattern-based programming language classifier.

Each language is described by a :class:`LanguageRule` in :data:`LANGUAGE_RULES`.
Scoring is a pure function of the rule table, the code and an optional
filename, so new languages are added by extending the table.
"""

import os
import re
from dataclasses import dataclass, field

UNKNOWN_LANGUAGE = "other"

# Added to a language's score when the filename extension is one of its own.
EXTENSION_BONUS = 0.5


@dataclass(frozen=True)
class LanguageRule:
    """Detection rule for one language."""

    name: str
    patterns: tuple[re.Pattern[str], ...]
    extensions: tuple[str, ...]
    weight: float = 1.0


@dataclass(frozen=True)
class Classification:
    """Result of classifying a piece of code."""

    language: str
    confidence: float
    scores: dict[str, float] = field(default_factory=dict)


def _rule(
    name: str,
    patterns: list[str | tuple[str, int]],
    extensions: list[str],
    weight: float = 1.0,
) -> LanguageRule:
    compiled = []
    for pattern in patterns:
        if isinstance(pattern, tuple):
            compiled.append(re.compile(pattern[0], pattern[1]))
        else:
            compiled.append(re.compile(pattern))
    return LanguageRule(
        name=name,
        patterns=tuple(compiled),
        extensions=tuple(extensions),
        weight=weight,
    )


# Table order is the tie-break order.
LANGUAGE_RULES: tuple[LanguageRule, ...] = (
    _rule(
        "javascript",
        [
            r"function\s*\(",
            r"var\s+\w+|let\s+\w+|const\s+\w+",
            r"=>\s*\{|=>\s*\w",
            r"console\.log",
            r"document\.|window\.",
            r"require\(|import\s+.*from",
            r"\.then\(|\.catch\(|async|await",
        ],
        [".js", ".jsx", ".mjs"],
    ),
    _rule(
        "typescript",
        [
            r":\s*(string|number|boolean|any|void)",
            r"interface\s+\w+",
            r"type\s+\w+\s*=",
            r"export\s+(interface|type|enum)",
            r"import.*from.*\.ts",
        ],
        [".ts", ".tsx"],
    ),
    _rule(
        "python",
        [
            r"def\s+\w+\s*\(",
            r"import\s+\w+|from\s+\w+\s+import",
            r"if\s+__name__\s*==\s*['\"]__main__['\"]",
            r"print\s*\(",
            r"class\s+\w+.*:",
            r"elif\s+",
            (r":\s*$", re.MULTILINE),
        ],
        [".py", ".pyw"],
    ),
    _rule(
        "java",
        [
            r"public\s+(class|interface|enum)",
            r"public\s+static\s+void\s+main",
            r"System\.out\.print",
            r"import\s+java\.",
            r"@Override|@Deprecated",
            r"throws\s+\w+Exception",
        ],
        [".java"],
    ),
    _rule(
        "csharp",
        [
            r"using\s+System",
            r"public\s+(class|interface|struct)",
            r"Console\.WriteLine",
            r"string\[\]\s+args",
            r"namespace\s+\w+",
        ],
        [".cs"],
    ),
    _rule(
        "cpp",
        [
            r"#include\s*<.*>",
            r"std::|using\s+namespace\s+std",
            r"cout\s*<<|cin\s*>>",
            r"int\s+main\s*\(",
            (r"^\s*#define", re.MULTILINE),
        ],
        [".cpp", ".cxx", ".cc", ".c++"],
    ),
    _rule(
        "c",
        [
            r"#include\s*<stdio\.h>",
            r"printf\s*\(",
            r"int\s+main\s*\(",
            r"malloc\s*\(|free\s*\(",
            r"scanf\s*\(",
        ],
        [".c", ".h"],
    ),
    _rule(
        "php",
        [
            r"<\?php",
            r"echo\s+|print\s+",
            r"\$\w+",
            r"function\s+\w+\s*\(",
            r"class\s+\w+\s*\{",
        ],
        [".php"],
    ),
    _rule(
        "ruby",
        [
            r"def\s+\w+",
            (r"end\s*$", re.MULTILINE),
            r"puts\s+|print\s+",
            r"class\s+\w+",
            r"@\w+",
            r"require\s+['\"]",
        ],
        [".rb"],
    ),
    _rule(
        "go",
        [
            r"package\s+main",
            r"func\s+\w+\s*\(",
            r"import\s+['\"]",
            r"fmt\.Print",
            r"var\s+\w+\s+\w+",
        ],
        [".go"],
    ),
    _rule(
        "rust",
        [
            r"fn\s+main\s*\(",
            r"let\s+(mut\s+)?\w+",
            r"println!\s*\(",
            r"use\s+std::",
            r"struct\s+\w+\s*\{",
        ],
        [".rs"],
    ),
    _rule(
        "sql",
        [
            (r"SELECT\s+.*FROM", re.IGNORECASE),
            (r"INSERT\s+INTO", re.IGNORECASE),
            (r"UPDATE\s+.*SET", re.IGNORECASE),
            (r"DELETE\s+FROM", re.IGNORECASE),
            (r"CREATE\s+(TABLE|DATABASE|INDEX)", re.IGNORECASE),
            (r"DROP\s+(TABLE|DATABASE)", re.IGNORECASE),
        ],
        [".sql"],
    ),
    _rule(
        "html",
        [
            (r"<html.*>", re.IGNORECASE),
            (r"<head>|</head>", re.IGNORECASE),
            (r"<body>|</body>", re.IGNORECASE),
            (r"<div.*>|</div>", re.IGNORECASE),
            (r"<p>|</p>|<br\s*/?>", re.IGNORECASE),
            (r"<!DOCTYPE html>", re.IGNORECASE),
        ],
        [".html", ".htm"],
    ),
    _rule(
        "css",
        [
            r"\{\s*[\w-]+\s*:\s*[^}]+\s*\}",
            r"@media\s+",
            r"\.[\w-]+\s*\{",
            r"#[\w-]+\s*\{",
            r"@import\s+",
        ],
        [".css"],
    ),
    _rule(
        "json",
        [
            (r"^\s*\{.*\}\s*$", re.DOTALL),
            (r"^\s*\[.*\]\s*$", re.DOTALL),
            r"\"[\w-]+\"\s*:\s*",
            r"\"\w+\":\s*\"[^\"]*\"",
            r"\"\w+\":\s*(true|false|null|\d+)",
        ],
        [".json"],
    ),
    _rule(
        "yaml",
        [
            (r"^[\w-]+:\s*.*", re.MULTILINE),
            (r"^\s*-\s+\w+", re.MULTILINE),
            (r"^---\s*$", re.MULTILINE),
            (r"^\s+[\w-]+:\s*", re.MULTILINE),
        ],
        [".yml", ".yaml"],
    ),
    _rule(
        "xml",
        [
            r"<\?xml.*\?>",
            r"</\w+>",
            r"<\w+.*/>",
            r"<\w+.*>.*</\w+>",
        ],
        [".xml"],
    ),
)

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(rule.name for rule in LANGUAGE_RULES)


def _extension_of(filename: str) -> str:
    return os.path.splitext(filename.strip().lower())[1]


def score_languages(
    code: str,
    filename: str | None = None,
    rules: tuple[LanguageRule, ...] = LANGUAGE_RULES,
) -> dict[str, float]:
    """Score every rule against the code.

    Only languages with a positive score appear in the result, in table order.
    """
    extension = _extension_of(filename) if filename else ""
    scores: dict[str, float] = {}

    for rule in rules:
        score = 0.0
        if extension and extension in rule.extensions:
            score += EXTENSION_BONUS

        matches = sum(1 for pattern in rule.patterns if pattern.search(code))
        if matches and rule.patterns:
            score += (matches / len(rule.patterns)) * rule.weight

        if score > 0:
            scores[rule.name] = score

    return scores


def classify(
    code: str,
    filename: str | None = None,
    rules: tuple[LanguageRule, ...] = LANGUAGE_RULES,
) -> Classification:
    """Guess the language of ``code``.

    Args:
        code: Source text.
        filename: Optional filename whose extension adds a fixed bonus.
        rules: Rule table, defaults to :data:`LANGUAGE_RULES`.

    Returns:
        Classification with the best language (``"other"`` when nothing
        scored), its confidence clamped to 1.0, and all positive scores.
    """
    scores = score_languages(code or "", filename, rules)

    best_language = UNKNOWN_LANGUAGE
    best_score = 0.0
    for language, score in scores.items():
        if score > best_score:
            best_language = language
            best_score = score

    return Classification(
        language=best_language,
        confidence=min(best_score, 1.0),
        scores=scores,
    )

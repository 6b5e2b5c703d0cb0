"""Static, regex-based code analysis: frameworks, libraries and structure."""

import re
from dataclasses import asdict, dataclass, field

_I = re.IGNORECASE

_WEB_JS_FRAMEWORKS = {
    "react": re.compile(r"import.*react|from ['\"]react['\"]|useState|useEffect|jsx|<\w+", _I),
    "vue": re.compile(r"import.*vue|from ['\"]vue['\"]|v-|@click|\{\{.*\}\}", _I),
    "angular": re.compile(r"import.*@angular|component|@Injectable|ngOnInit", _I),
    "express": re.compile(r"express\(\)|app\.get|app\.post|req\.|res\.", _I),
    "nextjs": re.compile(r"next/|getStaticProps|getServerSideProps", _I),
    "nodejs": re.compile(r"require\(|module\.exports|process\.env", _I),
}

# language -> {framework slug -> pattern}; evaluated in insertion order.
FRAMEWORK_PATTERNS: dict[str, dict[str, re.Pattern[str]]] = {
    "javascript": _WEB_JS_FRAMEWORKS,
    "typescript": {
        **_WEB_JS_FRAMEWORKS,
        "vue": re.compile(r"import.*vue|from ['\"]vue['\"]|v-|@click", _I),
    },
    "python": {
        "django": re.compile(r"from django|django\.|models\.Model|HttpResponse", _I),
        "flask": re.compile(r"from flask|Flask\(__name__\)|@app\.route", _I),
        "fastapi": re.compile(r"from fastapi|FastAPI\(\)|@app\.|async def", _I),
        "pandas": re.compile(r"import pandas|pd\.|DataFrame", _I),
        "numpy": re.compile(r"import numpy|np\.|array\(", _I),
        "tensorflow": re.compile(r"import tensorflow|tf\.|keras", _I),
        "pytorch": re.compile(r"import torch|torch\.", _I),
    },
    "java": {
        "spring": re.compile(r"import.*springframework|@SpringBootApplication|@RestController", _I),
        "hibernate": re.compile(r"import.*hibernate|@Entity|SessionFactory", _I),
    },
    "csharp": {
        "dotnet": re.compile(r"using System|namespace|class|public", _I),
        "aspnet": re.compile(r"using.*AspNetCore|Controller|IActionResult", _I),
    },
}

_JS_IMPORT_RE = re.compile(r"import.*?from\s*['\"]([^'\"]+)['\"]|require\(\s*['\"]([^'\"]+)['\"]\s*\)")
_PY_IMPORT_RE = re.compile(r"^\s*(?:import\s+(\w+)|from\s+(\w+)\s+import)", re.MULTILINE)

_JS_FUNCTION_RE = re.compile(r"function\s+(\w+)|const\s+(\w+)\s*=.*=>|(\w+)\s*:\s*function")
_PY_FUNCTION_RE = re.compile(r"def\s+(\w+)")
_CLASS_RE = re.compile(r"class\s+(\w+)")
_COMMENT_RE = re.compile(r"//.*|/\*[\s\S]*?\*/|#.*")

_JS_LIKE = ("javascript", "typescript")


@dataclass
class CodeAnalysis:
    """Structural facts about a snippet."""

    functions: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    line_count: int = 0
    character_count: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def _dedupe(values) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


def detect_frameworks(code: str, language: str | None) -> list[str]:
    """Frameworks whose signature pattern appears in the code."""
    patterns = FRAMEWORK_PATTERNS.get((language or "").lower())
    if not patterns:
        return []
    return [name for name, pattern in patterns.items() if pattern.search(code)]


def _package_root(module: str) -> str:
    parts = module.split("/")
    if module.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def detect_libraries(code: str, language: str | None) -> list[str]:
    """Top-level packages imported by the code (relative imports excluded)."""
    language = (language or "").lower()
    libraries: list[str] = []

    if language in _JS_LIKE:
        for match in _JS_IMPORT_RE.finditer(code):
            module = match.group(1) or match.group(2)
            if module and not module.startswith((".", "/")):
                libraries.append(_package_root(module))
    elif language == "python":
        for match in _PY_IMPORT_RE.finditer(code):
            libraries.append(match.group(1) or match.group(2))

    return _dedupe(libraries)


def analyze_code(code: str, language: str | None) -> CodeAnalysis:
    """Extract functions, classes, imports and comments."""
    language = (language or "").lower()
    analysis = CodeAnalysis(
        line_count=code.count("\n") + 1,
        character_count=len(code),
    )

    if language in _JS_LIKE:
        analysis.functions = _dedupe(
            next((g for g in m.groups() if g), "") for m in _JS_FUNCTION_RE.finditer(code)
        )
        analysis.classes = _dedupe(_CLASS_RE.findall(code))
    elif language == "python":
        analysis.functions = _dedupe(_PY_FUNCTION_RE.findall(code))
        analysis.classes = _dedupe(_CLASS_RE.findall(code))

    analysis.imports = detect_libraries(code, language)
    analysis.comments = [c.strip() for c in _COMMENT_RE.findall(code) if c.strip()]
    return analysis

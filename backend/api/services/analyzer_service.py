"""Analyzer service for API layer."""

import logging

from analyzer import AIContentGenerator, classify
from analyzer.providers import get_gemini_gateway
from api.schemas.analysis import ClassifyResponse, GenerateKind, GenerateResponse

logger = logging.getLogger(__name__)


class AnalyzerService:
    """Classification and ad-hoc AI generation for unsaved code."""

    def __init__(self, generator: AIContentGenerator | None = None):
        self._generator = generator or AIContentGenerator(get_gemini_gateway())

    def classify(self, code: str, filename: str | None = None) -> ClassifyResponse:
        result = classify(code, filename)
        return ClassifyResponse(
            language=result.language,
            confidence=result.confidence,
            scores={k: v for k, v in result.scores.items() if v > 0},
        )

    async def generate(
        self,
        kind: GenerateKind,
        code: str,
        language: str | None = None,
    ) -> GenerateResponse:
        """Generate one kind of content; never raises on backend failure.

        Args:
            kind: description, summary, explanation or tags
            code: Code to describe
            language: Declared language, classified when omitted
        """
        language = language or classify(code).language
        producers = {
            "description": self._generator.generate_description,
            "summary": self._generator.generate_summary,
            "explanation": self._generator.generate_explanation,
            "tags": self._generator.extract_tags,
        }
        result = await producers[kind](code, language)
        if result.degraded:
            logger.info(f"Returning fallback {kind}", extra={"language": language})

        return GenerateResponse(
            kind=kind,
            language=language,
            content=result.value,
            confidence=result.confidence,
            degraded=result.degraded,
        )

    def is_available(self) -> bool:
        """Check if the generative backend is configured."""
        return self._generator.gateway.is_configured()


# Singleton instance
_service: AnalyzerService | None = None


def get_analyzer_service() -> AnalyzerService:
    """Get or create analyzer service singleton."""
    global _service
    if _service is None:
        _service = AnalyzerService()
    return _service

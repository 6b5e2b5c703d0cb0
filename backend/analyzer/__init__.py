"""Snippet analysis: language classification, quality scoring and AI enrichment."""

from analyzer.generators import AIContentGenerator
from analyzer.language import Classification, classify
from analyzer.llm_provider import AIGateway, AIMetadata, AIResult, AIServiceUnavailableError
from analyzer.quality import QualityScore, score

__all__ = [
    "AIContentGenerator",
    "AIGateway",
    "AIMetadata",
    "AIResult",
    "AIServiceUnavailableError",
    "Classification",
    "QualityScore",
    "classify",
    "score",
]

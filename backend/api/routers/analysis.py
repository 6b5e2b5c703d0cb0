"""Analysis endpoints: language classification and ad-hoc AI generation.

- POST /classify     public, pure classification (client-side hinting)
- POST /ai/generate  authenticated, falls back instead of failing
"""

import logging

from fastapi import APIRouter, Depends

from api.auth.dependencies import get_current_user
from api.auth.models import TokenUser
from api.schemas.analysis import (
    ClassifyRequest,
    ClassifyResponse,
    GenerateRequest,
    GenerateResponse,
)
from api.services.analyzer_service import AnalyzerService, get_analyzer_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


@router.post("/classify", response_model=ClassifyResponse)
async def classify_code(
    request: ClassifyRequest,
    analyzer: AnalyzerService = Depends(get_analyzer_service),
) -> ClassifyResponse:
    """Detect the language of a code fragment. No authentication required."""
    return analyzer.classify(request.code, request.filename)


@router.post("/ai/generate", response_model=GenerateResponse)
async def generate_content(
    request: GenerateRequest,
    user: TokenUser = Depends(get_current_user),
    analyzer: AnalyzerService = Depends(get_analyzer_service),
) -> GenerateResponse:
    """Generate a description, summary, explanation or tags for code.

    When the generative backend is unavailable the response carries a
    deterministic fallback with ``degraded`` set.
    """
    return await analyzer.generate(request.kind, request.code, request.language)


@router.get("/ai/status")
async def ai_status(
    analyzer: AnalyzerService = Depends(get_analyzer_service),
) -> dict:
    """Check if AI generation is available."""
    return {
        "available": analyzer.is_available(),
        "provider": "gemini" if analyzer.is_available() else None,
    }

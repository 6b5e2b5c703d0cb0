"""Google Gemini gateway for snippet enrichment."""

import asyncio
import logging

from google import genai
from google.genai import types

from analyzer.llm_provider import AIGateway, AIServiceUnavailableError
from common.config import settings
from common.tracing import add_ai_response_attributes, ai_span, mark_ai_failure

logger = logging.getLogger(__name__)


class GeminiGateway(AIGateway):
    """AIGateway backed by the Gemini ``generate_content`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
        max_output_tokens: int | None = None,
        client: genai.Client | None = None,
    ):
        """Initialize the gateway.

        Args:
            api_key: Gemini API key. If not provided, uses settings lazily.
            model: Model name. If not provided, uses settings lazily.
            timeout_seconds: Upper bound for one call (default from settings).
            max_output_tokens: Output token cap (default from settings).
            client: Pre-built client, mainly for tests.
        """
        self._explicit_api_key = api_key
        self._explicit_model = model
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.ai_timeout_seconds
        self._max_output_tokens = max_output_tokens or settings.llm_max_output_tokens
        self._client = client
        self._model: str | None = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        """Lazily resolve model and client."""
        if self._initialized:
            return

        self._initialized = True
        try:
            self._model = self._explicit_model or settings.resolved_llm_enrichment_model
        except ValueError:
            self._model = None

        if self._client is None:
            api_key = self._explicit_api_key or settings.resolved_gemini_api_key
            if api_key:
                self._client = genai.Client(api_key=api_key)
                logger.info(f"Gemini client initialized with model: {self._model}")
            else:
                logger.warning("Gemini API key not configured, enrichment will use fallbacks")

    def is_configured(self) -> bool:
        """Check if both the API key and model are available."""
        self._ensure_initialized()
        return self._client is not None and bool(self._model)

    @property
    def model(self) -> str | None:
        self._ensure_initialized()
        return self._model

    async def generate(self, prompt: str, temperature: float = 0.3) -> str:
        """Generate text with one Gemini call bounded by the gateway timeout."""
        if not self.is_configured():
            raise AIServiceUnavailableError("Gemini gateway not configured")

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=self._max_output_tokens,
        )

        with ai_span(
            "generate_content",
            self._model,
            temperature=temperature,
            prompt_chars=len(prompt),
        ) as span:
            try:
                response = await asyncio.wait_for(
                    self._client.aio.models.generate_content(
                        model=self._model,
                        contents=prompt,
                        config=config,
                    ),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                mark_ai_failure(span, e)
                logger.warning(
                    "Gemini call timed out",
                    extra={"timeout_seconds": self._timeout, "model": self._model},
                )
                raise AIServiceUnavailableError("AI service timed out") from e
            except Exception as e:
                mark_ai_failure(span, e)
                logger.error(f"Gemini API error: {e}")
                raise AIServiceUnavailableError() from e

            try:
                text = (response.text or "").strip()
            except (AttributeError, ValueError) as e:
                mark_ai_failure(span, e)
                raise AIServiceUnavailableError("Malformed AI response") from e

            usage = getattr(response, "usage_metadata", None)
            add_ai_response_attributes(
                span,
                response_chars=len(text),
                input_tokens=getattr(usage, "prompt_token_count", None),
                output_tokens=getattr(usage, "candidates_token_count", None),
            )

        if not text:
            raise AIServiceUnavailableError("Empty AI response")
        return text


# Singleton instance
_gateway: GeminiGateway | None = None


def get_gemini_gateway() -> GeminiGateway:
    """Get or create the Gemini gateway singleton."""
    global _gateway
    if _gateway is None:
        _gateway = GeminiGateway()
    return _gateway

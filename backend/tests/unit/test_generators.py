"""Unit tests for AI content generators and the Gemini gateway."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from analyzer.generators import (
    MAX_EXTRACTED_TAGS,
    MAX_SUMMARY_CHARS,
    AIContentGenerator,
    parse_tag_array,
)
from analyzer.llm_provider import (
    DEGRADED_CONFIDENCE,
    NOMINAL_CONFIDENCE,
    AIGateway,
    AIServiceUnavailableError,
)
from analyzer.providers.gemini import GeminiGateway


class FakeGateway(AIGateway):
    """Gateway returning canned text, or failing every call."""

    def __init__(self, text: str = "generated", fail: bool = False):
        self.text = text
        self.fail = fail
        self.prompts: list[str] = []

    async def generate(self, prompt: str, temperature: float = 0.3) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise AIServiceUnavailableError("down")
        return self.text

    def is_configured(self) -> bool:
        return not self.fail


class TestParseTagArray:
    """Tests for lenient tag array parsing."""

    def test_parses_array_inside_prose(self):
        text = 'Here are the tags:\n["sorting", " recursion ", ""]\nHope this helps.'

        assert parse_tag_array(text) == ["sorting", "recursion"]

    def test_no_array_returns_empty(self):
        assert parse_tag_array("sorting, recursion") == []

    def test_invalid_json_returns_empty(self):
        assert parse_tag_array("[sorting, recursion]") == []

    def test_non_string_items_are_dropped(self):
        assert parse_tag_array('["a", 1, null, "b"]') == ["a", "b"]


class TestAIContentGenerator:
    """Tests for AIContentGenerator."""

    @pytest.mark.asyncio
    async def test_description_uses_prompt_template(self):
        """Test that the language and code are substituted into the prompt."""
        gateway = FakeGateway("Sorts a list.")
        generator = AIContentGenerator(gateway)

        result = await generator.generate_description("sorted(xs)", "python")

        assert result.value == "Sorts a list."
        assert result.degraded is False
        assert result.confidence == NOMINAL_CONFIDENCE
        assert "python" in gateway.prompts[0]
        assert "sorted(xs)" in gateway.prompts[0]

    @pytest.mark.asyncio
    async def test_summary_is_clipped(self):
        generator = AIContentGenerator(FakeGateway("word " * 200))

        result = await generator.generate_summary("code", "python")

        assert len(result.value) <= MAX_SUMMARY_CHARS
        assert result.value.endswith("...")

    @pytest.mark.asyncio
    async def test_description_fallback_on_failure(self):
        """Test that a gateway failure yields a degraded fallback, not an error."""
        generator = AIContentGenerator(FakeGateway(fail=True))

        result = await generator.generate_description("code", "go")

        assert result.degraded is True
        assert result.confidence == DEGRADED_CONFIDENCE
        assert "go snippet" in result.value

    @pytest.mark.asyncio
    async def test_explanation_fallback_without_language(self):
        generator = AIContentGenerator(FakeGateway(fail=True))

        result = await generator.generate_explanation("code", None)

        assert result.degraded is True
        assert "code snippet" in result.value

    @pytest.mark.asyncio
    async def test_metadata_nominal(self):
        generator = AIContentGenerator(FakeGateway("Text."))

        metadata = await generator.generate_metadata("code", "python")

        assert metadata.description == "Text."
        assert metadata.summary == "Text."
        assert metadata.confidence == NOMINAL_CONFIDENCE
        assert metadata.degraded is False
        assert metadata.as_dict()["generated_at"]

    @pytest.mark.asyncio
    async def test_metadata_degraded_when_any_part_fails(self):
        generator = AIContentGenerator(FakeGateway(fail=True))

        metadata = await generator.generate_metadata("code", "python")

        assert metadata.degraded is True
        assert metadata.confidence == DEGRADED_CONFIDENCE

    @pytest.mark.asyncio
    async def test_extract_tags_caps_count(self):
        tags = [f"tag{i}" for i in range(30)]
        text = "[" + ", ".join(f'"{t}"' for t in tags) + "]"
        generator = AIContentGenerator(FakeGateway(text))

        result = await generator.extract_tags("code", "python")

        assert result.value == tags[:MAX_EXTRACTED_TAGS]
        assert result.degraded is False

    @pytest.mark.asyncio
    async def test_extract_tags_unparseable_is_empty(self):
        generator = AIContentGenerator(FakeGateway("no tags here"))

        result = await generator.extract_tags("code", "python")

        assert result.value == []
        assert result.degraded is True

    @pytest.mark.asyncio
    async def test_extract_tags_failure_falls_back_to_language(self):
        generator = AIContentGenerator(FakeGateway(fail=True))

        result = await generator.extract_tags("code", "rust")

        assert result.value == ["rust"]
        assert result.degraded is True


class TestGeminiGateway:
    """Tests for GeminiGateway with a mocked client."""

    @pytest.fixture
    def mock_client(self):
        """Create a mock genai client whose async call returns text."""
        client = MagicMock()
        response = MagicMock()
        response.text = "  generated text  "
        response.usage_metadata = None
        client.aio.models.generate_content = AsyncMock(return_value=response)
        return client

    @pytest.mark.asyncio
    async def test_generate_returns_stripped_text(self, mock_client):
        gateway = GeminiGateway(model="gemini-test", client=mock_client)

        result = await gateway.generate("prompt", temperature=0.1)

        assert result == "generated text"
        call_kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "gemini-test"
        assert call_kwargs["contents"] == "prompt"
        assert call_kwargs["config"].temperature == 0.1

    def test_is_configured_with_client_and_model(self, mock_client):
        assert GeminiGateway(model="gemini-test", client=mock_client).is_configured()

    @pytest.mark.asyncio
    async def test_unconfigured_gateway_raises(self, monkeypatch):
        """Test that a missing API key surfaces as AIServiceUnavailableError."""
        from common.config import settings

        monkeypatch.setattr(settings, "gemini_api_key", "")
        monkeypatch.setattr(settings, "gemini_api_key_secret_arn", "")
        gateway = GeminiGateway(model="gemini-test")

        assert gateway.is_configured() is False
        with pytest.raises(AIServiceUnavailableError):
            await gateway.generate("prompt")

    @pytest.mark.asyncio
    async def test_api_error_is_translated(self, mock_client):
        mock_client.aio.models.generate_content.side_effect = RuntimeError("quota")
        gateway = GeminiGateway(model="gemini-test", client=mock_client)

        with pytest.raises(AIServiceUnavailableError):
            await gateway.generate("prompt")

    @pytest.mark.asyncio
    async def test_timeout_is_translated(self, mock_client):
        async def slow(**kwargs):
            await asyncio.sleep(1)

        mock_client.aio.models.generate_content = slow
        gateway = GeminiGateway(model="gemini-test", client=mock_client, timeout_seconds=0.01)

        with pytest.raises(AIServiceUnavailableError, match="timed out"):
            await gateway.generate("prompt")

    @pytest.mark.asyncio
    async def test_empty_response_is_unavailable(self, mock_client):
        mock_client.aio.models.generate_content.return_value.text = "   "
        gateway = GeminiGateway(model="gemini-test", client=mock_client)

        with pytest.raises(AIServiceUnavailableError, match="Empty"):
            await gateway.generate("prompt")

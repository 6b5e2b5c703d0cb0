"""Abstract generative backend interface and result types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

T = TypeVar("T")

NOMINAL_CONFIDENCE = 0.85
DEGRADED_CONFIDENCE = 0.1


class AIServiceUnavailableError(Exception):
    """The generative backend could not produce content.

    Raised for every gateway failure: missing configuration, timeout,
    transport or API error, empty or malformed payload.
    """

    def __init__(self, message: str = "AI service unavailable"):
        super().__init__(message)


@dataclass(frozen=True)
class AIResult(Generic[T]):
    """Value produced by an AI-backed generator.

    ``degraded`` is True when ``value`` is a deterministic fallback rather
    than model output.
    """

    value: T
    confidence: float
    degraded: bool = False

    @classmethod
    def ok(cls, value: T) -> "AIResult[T]":
        return cls(value=value, confidence=NOMINAL_CONFIDENCE, degraded=False)

    @classmethod
    def fallback(cls, value: T) -> "AIResult[T]":
        return cls(value=value, confidence=DEGRADED_CONFIDENCE, degraded=True)


@dataclass(frozen=True)
class AIMetadata:
    """Description and summary generated together for one snippet."""

    description: str
    summary: str
    generated_at: datetime
    confidence: float
    degraded: bool = False

    def as_dict(self) -> dict:
        return {
            "description": self.description,
            "summary": self.summary,
            "generated_at": self.generated_at.isoformat(),
            "confidence": self.confidence,
            "degraded": self.degraded,
        }


class AIGateway(ABC):
    """Single-call wrapper around a generative text backend."""

    @abstractmethod
    async def generate(self, prompt: str, temperature: float = 0.3) -> str:
        """Generate text for a prompt.

        Args:
            prompt: Full prompt text.
            temperature: Sampling temperature.

        Returns:
            Non-empty generated text.

        Raises:
            AIServiceUnavailableError: On any failure.
        """
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the gateway has the credentials and model it needs."""
        ...

"""Pydantic schemas for classification and AI generation endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class ClassifyRequest(BaseModel):
    """Request to detect the language of a code fragment."""

    code: str = Field(..., max_length=50000, description="Code to classify")
    filename: str | None = Field(
        default=None,
        max_length=255,
        description="Optional filename whose extension adds a bonus",
    )


class ClassifyResponse(BaseModel):
    language: str = Field(description="Best-guess language slug, 'other' if none matched")
    confidence: float = Field(ge=0.0, le=1.0)
    scores: dict[str, float] = Field(
        default_factory=dict,
        description="Positive per-language scores",
    )


GenerateKind = Literal["description", "summary", "explanation", "tags"]


class GenerateRequest(BaseModel):
    """Request for ad-hoc AI generation over code that is not saved."""

    code: str = Field(..., min_length=1, max_length=10240)
    language: str | None = Field(default=None, description="Detected when omitted")
    kind: GenerateKind = Field(default="description")


class GenerateResponse(BaseModel):
    """Generated content; ``degraded`` marks a deterministic fallback."""

    kind: GenerateKind
    language: str
    content: str | list[str]
    confidence: float
    degraded: bool

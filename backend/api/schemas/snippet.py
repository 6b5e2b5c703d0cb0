"""Pydantic schemas for snippet CRUD endpoints.

Field limits (title length, taxonomy caps, enums) are enforced by the
normalization pipeline so that failures come back as one field-level
validation error; these schemas only check types.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class EncryptionBundle(BaseModel):
    """Client-side ciphertext; the server never decrypts it."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    encrypted_content: str | None = Field(None, alias="encryptedContent")
    iv: str | None = None
    algorithm: str | None = None

    def as_stored(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SnippetCreate(BaseModel):
    """Schema for creating a new snippet."""

    title: str = Field(..., description="Snippet title (3-140 characters)")
    code: str = Field(..., max_length=50000, description="The code content")
    language: str | None = Field(None, description="Language slug; detected when omitted")
    filename: str | None = Field(None, max_length=255, description="Hint for language detection")
    summary: str | None = None
    documentation: str | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    libraries: list[str] = Field(default_factory=list)
    category: str = "other"
    domain: str = "other"
    complexity: str = "beginner"
    visibility: str = "private"
    pinned: bool = False
    encryption: EncryptionBundle | None = None


class SnippetUpdate(BaseModel):
    """Schema for updating a snippet. Only fields that are sent are changed."""

    title: str | None = None
    code: str | None = Field(None, max_length=50000)
    language: str | None = None
    filename: str | None = Field(None, max_length=255)
    summary: str | None = None
    documentation: str | None = None
    notes: str | None = None
    tags: list[str] | None = None
    frameworks: list[str] | None = None
    topics: list[str] | None = None
    libraries: list[str] | None = None
    category: str | None = None
    domain: str | None = None
    complexity: str | None = None
    visibility: str | None = None
    pinned: bool | None = None
    is_archived: bool | None = None
    encryption: EncryptionBundle | None = None

    def changes(self) -> dict:
        """Explicitly sent fields, minus the classifier hint."""
        data = self.model_dump(exclude_unset=True, exclude={"filename", "encryption"})
        if "encryption" in self.model_fields_set:
            data["encryption"] = self.encryption.as_stored() if self.encryption else None
        return data


class QualityMetrics(BaseModel):
    readability: int
    security: int
    performance: int
    maintainability: int
    overall: int
    last_analyzed: datetime | None = None


class SnippetSummary(BaseModel):
    """Snippet in list responses (excludes code)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    language: str
    summary: str | None
    tags: list[str]
    frameworks: list[str]
    topics: list[str]
    category: str
    domain: str
    complexity: str
    visibility: str
    pinned: bool
    is_archived: bool
    views: int
    copied: int
    stars: int
    favorites_count: int
    quality: QualityMetrics | None = None
    needs_analysis: bool
    created_at: datetime
    updated_at: datetime


class SnippetResponse(SnippetSummary):
    """Full snippet in API responses."""

    code: str
    language_confidence: float
    documentation: str | None
    notes: str | None
    libraries: list[str]
    keywords: list[str]
    ai_metadata: dict | None
    code_analysis: dict | None
    processing_errors: list[str]
    encryption: dict | None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class SnippetListResponse(BaseModel):
    """Paginated list of the caller's snippets."""

    items: list[SnippetSummary]
    pagination: Pagination


class SnippetDeleteResponse(BaseModel):
    """Schema for delete confirmation."""

    deleted: bool
    id: uuid.UUID


class SnippetCopyResponse(BaseModel):
    id: uuid.UUID
    copied: int

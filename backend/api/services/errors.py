"""Domain errors raised by the snippet services.

Routers translate these into HTTP responses; services never raise
``HTTPException`` themselves.
"""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation message."""

    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


class SnippetError(Exception):
    """Base class for snippet domain errors."""


class SnippetValidationError(SnippetError):
    """The write was rejected; nothing was applied."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors)
        super().__init__(f"Validation failed: {fields}")

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    def as_detail(self) -> dict:
        return {
            "message": "Validation failed",
            "errors": [e.as_dict() for e in self.errors],
        }


class SnippetAccessDeniedError(SnippetError):
    """Requester may not see or modify the snippet."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class SnippetNotFoundError(SnippetError):
    """Referenced snippet does not exist."""

    def __init__(self, message: str = "Snippet not found"):
        super().__init__(message)


class MalformedIdError(SnippetError):
    """Identifier does not parse as a snippet id."""

    def __init__(self, message: str = "Invalid snippet ID format"):
        super().__init__(message)

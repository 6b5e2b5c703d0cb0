"""Translation of snippet domain errors into HTTP errors."""

from fastapi import HTTPException, status

from api.services.errors import (
    MalformedIdError,
    SnippetAccessDeniedError,
    SnippetError,
    SnippetNotFoundError,
    SnippetValidationError,
)


def to_http_exception(error: SnippetError) -> HTTPException:
    """Map a domain error to the matching HTTPException."""
    if isinstance(error, SnippetValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.as_detail())
    if isinstance(error, MalformedIdError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, SnippetAccessDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, SnippetNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))

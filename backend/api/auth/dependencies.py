"""FastAPI dependencies for authentication."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.models import TokenUser
from api.auth.tokens import (
    InvalidTokenError,
    TokenExpiredError,
    TokenValidator,
    get_token_validator,
)
from api.models import User
from api.services.database import get_db
from api.services.user_service import UserService

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme for OpenAPI docs
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    validator: TokenValidator = Depends(get_token_validator),
) -> TokenUser:
    """Validate the bearer token and return its principal.

    Raises:
        HTTPException: 401 if token is missing, expired, or invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = validator.decode_token(credentials.credentials)
        return TokenUser.from_token_payload(payload)
    except TokenExpiredError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_db_user(
    token_user: TokenUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get or create the database user for the authenticated subject."""
    user_service = UserService(db)
    return await user_service.get_or_create_from_token(
        subject=token_user.subject,
        email=token_user.email,
        username=token_user.username,
    )

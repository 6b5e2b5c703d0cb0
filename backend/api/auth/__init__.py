"""Authentication module for bearer token (JWKS) validation."""

from api.auth.dependencies import get_current_user, get_db_user
from api.auth.models import TokenUser
from api.auth.tokens import TokenValidator, get_token_validator

__all__ = [
    "TokenUser",
    "TokenValidator",
    "get_current_user",
    "get_db_user",
    "get_token_validator",
]

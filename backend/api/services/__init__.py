"""API services package."""

from api.services.database import close_db, get_db
from api.services.snippet_service import SnippetService
from api.services.user_service import UserService

__all__ = [
    "SnippetService",
    "UserService",
    "close_db",
    "get_db",
]

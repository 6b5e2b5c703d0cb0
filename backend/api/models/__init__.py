"""SQLAlchemy models for Snippet Vault.

This module exports all database models and the declarative base.
"""

from api.models.base import Base
from api.models.snippet import Snippet
from api.models.user import User

__all__ = ["Base", "User", "Snippet"]

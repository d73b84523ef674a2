"""Database layer for the bookmark manager.

This module provides:
- Supabase client configuration (auth, PostgREST, Realtime)
- Repository pattern for bookmark access through Supabase
- SQLAlchemy models and Alembic migrations for schema management
"""

from .config import AppConfig, get_config, get_supabase_client
from .models import Base, Bookmark
from .repository import BookmarkRepository

__all__ = [
    # Config
    "AppConfig",
    "get_config",
    "get_supabase_client",
    # Models
    "Base",
    "Bookmark",
    # Repositories
    "BookmarkRepository",
]

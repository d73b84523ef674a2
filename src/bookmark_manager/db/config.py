"""Supabase and database configuration."""

import logging
import os
from functools import lru_cache
from typing import Any, cast

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from supabase import AsyncClient, AsyncClientOptions, acreate_client

logger = logging.getLogger(__name__)

DEFAULT_SESSION_SECRET = "bookmark-manager-session-secret-change-in-production"


class AppConfig:
    """Application configuration from environment variables."""

    def __init__(self) -> None:
        self.supabase_url = os.getenv("SUPABASE_URL")
        self.supabase_anon_key = os.getenv("SUPABASE_ANON_KEY")
        self.database_url = os.getenv("DATABASE_URL")
        self.database_url_direct = os.getenv("DATABASE_URL_DIRECT")
        self.site_url = os.getenv("SITE_URL", "http://localhost:8000").rstrip("/")
        self.oauth_provider = os.getenv("OAUTH_PROVIDER", "google")
        self.session_secret = os.getenv("SESSION_SECRET", DEFAULT_SESSION_SECRET)
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def validate(self) -> None:
        """Validate that required configuration is present."""
        if not self.supabase_url:
            raise ValueError("SUPABASE_URL environment variable required")
        if not self.supabase_anon_key:
            raise ValueError("SUPABASE_ANON_KEY environment variable required")

    def validate_database(self) -> None:
        """Validate database connection configuration."""
        if not (self.database_url or self.database_url_direct):
            raise ValueError(
                "DATABASE_URL environment variable required for migrations. "
                "Get the connection string from Supabase Dashboard > Settings > Database."
            )

    @property
    def is_configured(self) -> bool:
        """Check if Supabase is configured."""
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def is_database_configured(self) -> bool:
        """Check if a direct database connection is configured."""
        return bool(self.database_url or self.database_url_direct)

    @property
    def uses_default_secret(self) -> bool:
        return self.session_secret == DEFAULT_SESSION_SECRET

    @property
    def callback_url(self) -> str:
        """Address the OAuth provider sends the browser back to."""
        return f"{self.site_url}/auth/callback"


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


async def get_supabase_client(storage: Any = None) -> AsyncClient:
    """Create a Supabase client for auth, table and realtime operations.

    A new client is created per request so that each one carries only the
    session of the user making that request.

    Args:
        storage: Auth storage for the PKCE code verifier. Defaults to the
                 client's in-memory storage.

    Returns:
        Async Supabase client instance
    """
    config = get_config()
    config.validate()

    # Sessions live in the signed cookie, not in the client
    option_kwargs: dict[str, Any] = {
        "flow_type": "pkce",
        "persist_session": False,
        "auto_refresh_token": False,
    }
    if storage is not None:
        option_kwargs["storage"] = storage

    # validate() ensures these are not None
    return await acreate_client(
        cast(str, config.supabase_url),
        cast(str, config.supabase_anon_key),
        options=AsyncClientOptions(**option_kwargs),
    )


_engine: AsyncEngine | None = None


def get_async_engine() -> AsyncEngine:
    """Get async SQLAlchemy engine for schema migrations.

    Prefers the direct connection since migrations need session-level
    features the transaction pooler does not provide.

    Returns:
        Async SQLAlchemy engine
    """
    global _engine

    config = get_config()
    config.validate_database()

    if _engine is None:
        url = cast(str, config.database_url_direct or config.database_url)
        # PgBouncer compatibility: disable prepared statement caching
        _engine = create_async_engine(
            url,
            echo=False,
            pool_recycle=300,
            connect_args={
                "prepared_statement_cache_size": 0,
                "statement_cache_size": 0,
            },
        )
    return _engine


async def close_engines() -> None:
    """Close the database engine. Call on application shutdown."""
    global _engine

    if _engine is not None:
        await _engine.dispose()
        _engine = None

"""FastAPI dependencies for Supabase clients and authentication."""

from fastapi import Depends, HTTPException, Request
from supabase import AsyncClient

from .. import auth
from ..db.config import get_config, get_supabase_client
from ..db.repository import BookmarkRepository
from ..models import AuthSession, AuthUser


async def get_supabase(request: Request) -> AsyncClient | None:
    """Get a Supabase client for this request.

    Returns:
        Supabase client or None if not configured
    """
    config = get_config()
    if not config.is_configured:
        return None
    return await get_supabase_client(storage=auth.SessionCookieStorage(request.session))


def get_stored_session(request: Request) -> AuthSession | None:
    """Get the session from the cookie without contacting Supabase."""
    return auth.get_session(request.session)


async def get_optional_user(
    request: Request,
    client: AsyncClient | None = Depends(get_supabase),
) -> AuthUser | None:
    """Get the current user, validated with Supabase Auth, if authenticated.

    Returns:
        The signed-in user or None
    """
    if client is None:
        return None
    return await auth.get_user(client, request.session)


def get_repository(
    client: AsyncClient | None = Depends(get_supabase),
) -> BookmarkRepository:
    """Get a bookmark repository bound to this request's client.

    Raises:
        HTTPException: If Supabase is not configured
    """
    if client is None:
        raise HTTPException(status_code=503, detail="Supabase is not configured")
    return BookmarkRepository(client)

"""Session guard: sign-in, sign-out and session lookup.

Identity is owned by Supabase Auth. The web tier keeps the user's tokens
in the signed session cookie and restores them on a fresh Supabase client
for each request.
"""

import logging
from collections.abc import MutableMapping
from typing import Any

import httpx
from pydantic import ValidationError
from supabase import AsyncClient
from supabase import AuthError as SupabaseAuthError

from .errors import AuthError
from .models import AuthSession, AuthUser

logger = logging.getLogger(__name__)

SESSION_KEY = "auth"
STORAGE_KEY = "supabase"


class SessionCookieStorage:
    """Supabase auth storage backed by the signed session cookie.

    Only the PKCE code verifier passes through here: it is written when the
    OAuth redirect starts and read back when the provider returns.
    """

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self.session = session

    async def get_item(self, key: str) -> str | None:
        return self.session.get(STORAGE_KEY, {}).get(key)

    async def set_item(self, key: str, value: str) -> None:
        items = dict(self.session.get(STORAGE_KEY, {}))
        items[key] = value
        self.session[STORAGE_KEY] = items

    async def remove_item(self, key: str) -> None:
        items = dict(self.session.get(STORAGE_KEY, {}))
        items.pop(key, None)
        if items:
            self.session[STORAGE_KEY] = items
        else:
            self.session.pop(STORAGE_KEY, None)


def get_session(session: MutableMapping[str, Any]) -> AuthSession | None:
    """Get the stored session, if any. Does not contact Supabase."""
    data = session.get(SESSION_KEY)
    if not data:
        return None
    try:
        return AuthSession.model_validate(data)
    except ValidationError:
        logger.warning("Discarding malformed session cookie")
        session.pop(SESSION_KEY, None)
        return None


def store_session(session: MutableMapping[str, Any], auth_session: AuthSession) -> None:
    session[SESSION_KEY] = auth_session.model_dump(mode="json")


def clear_session(session: MutableMapping[str, Any]) -> None:
    session.pop(SESSION_KEY, None)


def _to_auth_session(response: Any) -> AuthSession | None:
    """Build an AuthSession from a Supabase auth response."""
    if not response or not response.session or not response.user:
        return None
    return AuthSession(
        access_token=response.session.access_token,
        refresh_token=response.session.refresh_token,
        user=AuthUser(id=response.user.id, email=response.user.email),
    )


async def get_user(
    client: AsyncClient, session: MutableMapping[str, Any]
) -> AuthUser | None:
    """Get the current user, validated against Supabase Auth.

    Restores the stored tokens on the client, which refreshes them when the
    access token has expired. Refreshed tokens are written back to the
    cookie. A session that cannot be restored is cleared.

    Args:
        client: Supabase client for this request
        session: The request's session mapping

    Returns:
        The signed-in user or None
    """
    stored = get_session(session)
    if stored is None:
        return None

    try:
        response = await client.auth.set_session(
            stored.access_token, stored.refresh_token
        )
    except (SupabaseAuthError, httpx.HTTPError) as e:
        logger.warning(f"Stored session for user {stored.user.id} rejected: {e}")
        clear_session(session)
        return None

    restored = _to_auth_session(response)
    if restored is None:
        clear_session(session)
        return None

    if restored != stored:
        store_session(session, restored)
    return restored.user


async def begin_sign_in(client: AsyncClient, provider: str, redirect_to: str) -> str:
    """Start the OAuth flow and return the provider URL to redirect to.

    The client must have been created with a SessionCookieStorage so the
    PKCE code verifier survives the redirect.

    Raises:
        AuthError: If Supabase refuses to start the flow
    """
    try:
        response = await client.auth.sign_in_with_oauth(
            {"provider": provider, "options": {"redirect_to": redirect_to}}
        )
    except (SupabaseAuthError, httpx.HTTPError) as e:
        logger.error(f"Could not start {provider} sign-in: {e}")
        raise AuthError("Could not start sign in. Please try again.") from e

    logger.info(f"Starting {provider} sign-in")
    return response.url


async def complete_sign_in(
    client: AsyncClient, session: MutableMapping[str, Any], code: str
) -> AuthSession:
    """Exchange the OAuth code for a session and store it.

    Raises:
        AuthError: If the code is missing, expired or already used
    """
    if not code:
        raise AuthError("Sign in was cancelled or failed.")

    try:
        response = await client.auth.exchange_code_for_session({"auth_code": code})
    except (SupabaseAuthError, httpx.HTTPError) as e:
        logger.warning(f"OAuth code exchange failed: {e}")
        raise AuthError("Sign in failed. Please try again.") from e

    auth_session = _to_auth_session(response)
    if auth_session is None:
        raise AuthError("Sign in failed. Please try again.")

    store_session(session, auth_session)
    logger.info(f"User {auth_session.user.id} signed in")
    return auth_session


async def sign_out(client: AsyncClient | None, session: MutableMapping[str, Any]) -> None:
    """Revoke the current session, if any, and clear the cookie.

    Safe to call without an active session.
    """
    stored = get_session(session)
    clear_session(session)
    if stored is None or client is None:
        return

    try:
        await client.auth.set_session(stored.access_token, stored.refresh_token)
        await client.auth.sign_out()
    except (SupabaseAuthError, httpx.HTTPError) as e:
        # Cookie is already cleared; an expired token cannot be revoked anyway
        logger.warning(f"Session revoke for user {stored.user.id} failed: {e}")
    else:
        logger.info(f"User {stored.user.id} signed out")

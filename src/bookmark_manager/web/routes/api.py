"""JSON API routes for the bookmark manager.

Used by the dashboard script for in-place updates, plus the Server-Sent
Events stream that pushes the list whenever Supabase Realtime reports a
change to the user's rows.
"""

import json
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from supabase import AsyncClient

from ... import auth
from ...dashboard import DashboardController
from ...db.config import get_config
from ...db.repository import BookmarkRepository
from ...errors import (
    BookmarkError,
    BookmarkNotFoundError,
    BookmarkValidationError,
    RemoteOperationError,
)
from ...models import AuthUser, DashboardState
from ...realtime import BookmarkChangeListener
from ..dependencies import get_optional_user, get_repository, get_supabase

router = APIRouter()

KEEPALIVE_SECONDS = 15.0


class BookmarkInput(BaseModel):
    title: str = ""
    url: str = ""


def _check_auth(user: AuthUser | None) -> JSONResponse | None:
    """Return a 401 JSON response if user is not logged in, else None."""
    if user is None:
        return JSONResponse(
            {"ok": False, "error": "Sign in to manage bookmarks."}, status_code=401
        )
    return None


def _error_response(error: BookmarkError | None) -> JSONResponse:
    """Map a controller failure to a JSON error response."""
    if isinstance(error, BookmarkValidationError):
        status_code = 422
    elif isinstance(error, BookmarkNotFoundError):
        status_code = 404
    elif isinstance(error, RemoteOperationError):
        status_code = 502
    else:
        status_code = 400
    message = error.message if error else "Request failed."
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


def _bookmarks_json(state: DashboardState) -> list[dict]:
    return [b.model_dump(mode="json") for b in state.bookmarks]


def _sse(event: str, data: object) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


# =============================================================================
# AUTH
# =============================================================================


@router.get("/auth/me")
async def get_current_user(user: AuthUser | None = Depends(get_optional_user)):
    """Return current user and config state."""
    config = get_config()
    return {
        "user": user.model_dump(mode="json") if user else None,
        "supabase_configured": config.is_configured,
    }


# =============================================================================
# BOOKMARKS
# =============================================================================


@router.get("/bookmarks")
async def list_bookmarks(
    user: AuthUser | None = Depends(get_optional_user),
    repository: BookmarkRepository = Depends(get_repository),
):
    """List the user's bookmarks, newest first."""
    if error := _check_auth(user):
        return error

    controller = DashboardController(repository)
    state = await controller.load(user)
    if controller.last_error:
        return _error_response(controller.last_error)
    return {"ok": True, "bookmarks": _bookmarks_json(state)}


@router.post("/bookmarks")
async def create_bookmark(
    body: BookmarkInput,
    user: AuthUser | None = Depends(get_optional_user),
    repository: BookmarkRepository = Depends(get_repository),
):
    """Create a bookmark and return it with the refreshed list."""
    if error := _check_auth(user):
        return error

    controller = DashboardController(repository, DashboardState(user=user))
    created = await controller.add(body.title, body.url)
    if created is None:
        return _error_response(controller.last_error)

    return JSONResponse(
        {
            "ok": True,
            "bookmark": created.model_dump(mode="json"),
            "bookmarks": _bookmarks_json(controller.state),
        },
        status_code=201,
    )


@router.delete("/bookmarks/{bookmark_id}")
async def delete_bookmark(
    bookmark_id: UUID,
    user: AuthUser | None = Depends(get_optional_user),
    repository: BookmarkRepository = Depends(get_repository),
):
    """Delete one of the user's bookmarks."""
    if error := _check_auth(user):
        return error

    controller = DashboardController(repository, DashboardState(user=user))
    if not await controller.delete(bookmark_id):
        return _error_response(controller.last_error)
    return {"ok": True, "id": str(bookmark_id)}


@router.get("/bookmarks/events")
async def bookmark_events(
    request: Request,
    user: AuthUser | None = Depends(get_optional_user),
    client: AsyncClient | None = Depends(get_supabase),
):
    """Stream the bookmark list as SSE events, re-sent on every change.

    Each connection owns one realtime subscription, released when the
    browser disconnects or Realtime closes the channel.
    """
    if error := _check_auth(user):
        return error
    if client is None:
        return JSONResponse(
            {"ok": False, "error": "Supabase is not configured."}, status_code=503
        )
    stored = auth.get_session(request.session)
    if stored is None:
        return _check_auth(None)

    controller = DashboardController(BookmarkRepository(client), DashboardState(user=user))
    listener = BookmarkChangeListener(client, user.id, stored.access_token)

    def snapshot(ok: bool) -> str:
        if ok:
            return _sse("bookmarks", _bookmarks_json(controller.state))
        return _sse("error", {"message": controller.state.error})

    async def event_stream():
        """Send a snapshot after subscribing, then one per change."""
        async with listener:
            yield snapshot(await controller.refresh())

            async for payload in listener.changes(keepalive=KEEPALIVE_SECONDS):
                if payload is None:
                    if await request.is_disconnected():
                        break
                    yield ": keepalive\n\n"
                    continue

                yield snapshot(await controller.apply_change(payload))

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )

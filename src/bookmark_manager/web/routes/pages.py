"""Page routes for the bookmark manager web UI.

Serves the landing page, the OAuth redirect endpoints and the dashboard.
Form posts follow post/redirect/get with flash messages.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from supabase import AsyncClient

from ... import auth
from ...dashboard import DashboardController
from ...db.config import get_config
from ...db.repository import BookmarkRepository
from ...errors import AuthError
from ...models import AuthSession, AuthUser, DashboardState
from ..dependencies import (
    get_optional_user,
    get_repository,
    get_stored_session,
    get_supabase,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DASHBOARD_PATH = "/dashboard"


def _templates(request: Request):
    """Get templates instance from app state."""
    return request.app.state.templates


def _flash(request: Request, text: str, type: str = "info") -> None:
    """Add a flash message to the session."""
    if "flash" not in request.session:
        request.session["flash"] = []
    request.session["flash"].append({"text": text, "type": type})


def _get_flash(request: Request) -> list[dict]:
    """Get and clear flash messages from the session."""
    messages = request.session.pop("flash", [])
    return messages


def _flash_state(request: Request, state: DashboardState) -> None:
    """Carry the controller's outcome across the redirect."""
    if state.error:
        _flash(request, state.error, "error")
        # Keep what the user typed so they can retry
        if state.title or state.url:
            request.session["form"] = {"title": state.title, "url": state.url}
    elif state.message:
        _flash(request, state.message, "success")


def _safe_next(next_path: str | None) -> str:
    """Only allow same-site relative redirect targets."""
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return DASHBOARD_PATH


# =============================================================================
# LANDING
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    stored: AuthSession | None = Depends(get_stored_session),
):
    """Landing page: sign-in action, or straight to the dashboard."""
    if stored is not None:
        return RedirectResponse(DASHBOARD_PATH, status_code=303)

    templates = _templates(request)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "user": None,
            "provider": get_config().oauth_provider,
            "active_page": "home",
            "flash_messages": _get_flash(request),
        },
    )


# =============================================================================
# AUTH
# =============================================================================


@router.get("/auth/login")
async def login(
    request: Request,
    client: AsyncClient | None = Depends(get_supabase),
):
    """Redirect to the OAuth provider."""
    if client is None:
        _flash(request, "Supabase is not configured.", "error")
        return RedirectResponse("/", status_code=303)

    config = get_config()
    try:
        provider_url = await auth.begin_sign_in(
            client,
            config.oauth_provider,
            f"{config.callback_url}?next={DASHBOARD_PATH}",
        )
    except AuthError as e:
        _flash(request, e.message, "error")
        return RedirectResponse("/", status_code=303)

    return RedirectResponse(provider_url, status_code=303)


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: str = "",
    next_path: str | None = Query(None, alias="next"),
    error_description: str | None = None,
    client: AsyncClient | None = Depends(get_supabase),
):
    """Complete the OAuth flow and continue to the dashboard."""
    if client is None:
        _flash(request, "Supabase is not configured.", "error")
        return RedirectResponse("/", status_code=303)

    if error_description:
        logger.warning(f"OAuth provider returned an error: {error_description}")
        _flash(request, error_description, "error")
        return RedirectResponse("/", status_code=303)

    try:
        await auth.complete_sign_in(client, request.session, code)
    except AuthError as e:
        _flash(request, e.message, "error")
        return RedirectResponse("/", status_code=303)

    return RedirectResponse(_safe_next(next_path), status_code=303)


@router.post("/auth/logout")
@router.get("/auth/logout")
async def logout(
    request: Request,
    client: AsyncClient | None = Depends(get_supabase),
):
    """Sign out and return to the landing page."""
    await auth.sign_out(client, request.session)
    return RedirectResponse("/", status_code=303)


# =============================================================================
# DASHBOARD
# =============================================================================


@router.get(DASHBOARD_PATH, response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user: AuthUser | None = Depends(get_optional_user),
    client: AsyncClient | None = Depends(get_supabase),
):
    """Bookmark list with the add form."""
    if user is None or client is None:
        return RedirectResponse("/", status_code=303)

    form = request.session.pop("form", {})
    controller = DashboardController(
        BookmarkRepository(client),
        DashboardState(title=form.get("title", ""), url=form.get("url", "")),
    )
    state = await controller.load(user)

    templates = _templates(request)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "state": state,
            "user": user,
            "active_page": "dashboard",
            "flash_messages": _get_flash(request),
        },
    )


@router.post(f"{DASHBOARD_PATH}/bookmarks")
async def add_bookmark(
    request: Request,
    title: str = Form(""),
    url: str = Form(""),
    user: AuthUser | None = Depends(get_optional_user),
    repository: BookmarkRepository = Depends(get_repository),
):
    """Add a bookmark from the dashboard form."""
    if user is None:
        return RedirectResponse("/", status_code=303)

    controller = DashboardController(repository, DashboardState(user=user))
    await controller.add(title, url)
    _flash_state(request, controller.state)
    return RedirectResponse(DASHBOARD_PATH, status_code=303)


@router.post(f"{DASHBOARD_PATH}/bookmarks/{{bookmark_id}}/delete")
async def delete_bookmark(
    request: Request,
    bookmark_id: UUID,
    user: AuthUser | None = Depends(get_optional_user),
    repository: BookmarkRepository = Depends(get_repository),
):
    """Delete a bookmark from the dashboard list."""
    if user is None:
        return RedirectResponse("/", status_code=303)

    controller = DashboardController(repository, DashboardState(user=user))
    await controller.delete(bookmark_id)
    _flash_state(request, controller.state)
    return RedirectResponse(DASHBOARD_PATH, status_code=303)

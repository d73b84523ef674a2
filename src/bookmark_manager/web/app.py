"""FastAPI application factory for the bookmark manager web UI."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware

from ..db.config import get_config

logger = logging.getLogger(__name__)

# Paths
WEB_DIR = Path(__file__).parent
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    config = get_config()
    if not config.is_configured:
        logger.warning("SUPABASE_URL/SUPABASE_ANON_KEY not set; sign in is disabled")
    if config.uses_default_secret:
        logger.warning("SESSION_SECRET not set; using the development default")
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app
    """
    config = get_config()

    app = FastAPI(
        title="Bookmark Manager",
        description="Save and access your links anywhere",
        lifespan=lifespan,
    )

    # Session middleware for auth cookies
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        session_cookie="bookmark_session",
        max_age=60 * 60 * 24 * 7,  # 1 week
        same_site="lax",
        https_only=config.site_url.startswith("https://"),
    )

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    # Templates (shared instance accessible via app.state)
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    app.state.templates = templates
    templates.env.globals["supabase_configured"] = config.is_configured

    from .routes.api import router as api_router
    from .routes.pages import router as pages_router

    app.include_router(api_router, prefix="/api")
    app.include_router(pages_router)

    return app

"""Data models for bookmarks, sessions and dashboard state."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .errors import BookmarkValidationError

SCHEMES = ("http://", "https://")


def normalize_url(url: str) -> str:
    """Prefix ``https://`` to a URL that has no http(s) scheme.

    Anything else about the value is left alone, including malformed hosts.
    """
    if url.startswith(SCHEMES):
        return url
    return f"https://{url}"


class Bookmark(BaseModel):
    """A bookmark row as stored in the ``bookmarks`` table."""

    id: UUID
    title: str
    url: str
    user_id: UUID
    created_at: datetime


class BookmarkDraft(BaseModel):
    """A title/url pair that passed validation and is ready to insert."""

    title: str
    url: str

    @classmethod
    def from_input(cls, title: str | None, url: str | None) -> "BookmarkDraft":
        """Trim and validate raw form input.

        Raises:
            BookmarkValidationError: If the title or url is blank
        """
        title = (title or "").strip()
        url = (url or "").strip()
        if not title or not url:
            raise BookmarkValidationError("Title and URL are required.")
        return cls(title=title, url=normalize_url(url))


class AuthUser(BaseModel):
    """The signed-in user's identity."""

    id: UUID
    email: str | None = None


class AuthSession(BaseModel):
    """Tokens and identity kept in the signed session cookie."""

    access_token: str
    refresh_token: str
    user: AuthUser


class DashboardState(BaseModel):
    """View state owned by one dashboard instance."""

    user: AuthUser | None = None
    bookmarks: list[Bookmark] = Field(default_factory=list)
    title: str = ""  # Form inputs, kept on failure so the user can retry
    url: str = ""
    loading: bool = False
    error: str | None = None
    message: str | None = None

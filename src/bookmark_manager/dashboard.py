"""Dashboard operations over a single view-state object.

``DashboardController`` is the only code that mutates ``DashboardState``.
Failures never raise out of the controller: the message lands in
``state.error``, the exception in ``last_error``, and the bookmark list is
left as it was.
"""

import logging
from typing import Any
from uuid import UUID

from .db.repository import BookmarkRepository
from .errors import (
    BookmarkError,
    BookmarkNotFoundError,
    BookmarkValidationError,
    RemoteOperationError,
)
from .models import AuthUser, Bookmark, BookmarkDraft, DashboardState

logger = logging.getLogger(__name__)


class DashboardController:
    """Load, add and delete bookmarks for the signed-in user."""

    def __init__(
        self,
        repository: BookmarkRepository,
        state: DashboardState | None = None,
    ) -> None:
        self.repository = repository
        self.state = state if state is not None else DashboardState()
        self.last_error: BookmarkError | None = None

    def _fail(self, error: BookmarkError) -> None:
        self.last_error = error
        self.state.error = error.message

    def _reset_messages(self) -> None:
        self.last_error = None
        self.state.error = None
        self.state.message = None

    def _require_user(self) -> AuthUser | None:
        if self.state.user is None:
            self._fail(BookmarkError("Sign in to manage bookmarks."))
        return self.state.user

    async def load(self, user: AuthUser) -> DashboardState:
        """Bind the dashboard to a user and fetch their bookmarks."""
        self.state.user = user
        await self.refresh()
        return self.state

    async def refresh(self) -> bool:
        """Re-fetch the full list.

        Returns:
            True if the list was replaced, False if the fetch failed and the
            previous list was kept
        """
        user = self._require_user()
        if user is None:
            return False

        try:
            self.state.bookmarks = await self.repository.list_for_user(user.id)
        except RemoteOperationError as e:
            self._fail(e)
            return False
        return True

    async def add(self, title: str | None, url: str | None) -> Bookmark | None:
        """Validate and insert a bookmark.

        Blank input is rejected without a network call. Inputs are cleared
        only once the insert succeeds.

        Returns:
            The created bookmark, or None if nothing was inserted
        """
        self.state.title = title or ""
        self.state.url = url or ""
        self._reset_messages()

        if self.state.loading:
            return None
        user = self._require_user()
        if user is None:
            return None

        try:
            draft = BookmarkDraft.from_input(title, url)
        except BookmarkValidationError as e:
            self._fail(e)
            return None

        self.state.loading = True
        try:
            created = await self.repository.create(user.id, draft)
        except RemoteOperationError as e:
            self._fail(e)
            return None
        finally:
            self.state.loading = False

        self.state.title = ""
        self.state.url = ""
        self.state.message = "Bookmark added."

        if not await self.refresh():
            if all(b.id != created.id for b in self.state.bookmarks):
                self.state.bookmarks.insert(0, created)
        return created

    async def delete(self, bookmark_id: UUID) -> bool:
        """Delete one of the user's bookmarks.

        The local entry is removed only after the backend confirms a row
        matching both the id and the user was deleted.

        Returns:
            True if the bookmark was deleted
        """
        self._reset_messages()

        user = self._require_user()
        if user is None:
            return False

        try:
            removed = await self.repository.delete(bookmark_id, user.id)
        except RemoteOperationError as e:
            self._fail(e)
            return False

        if removed == 0:
            logger.info(f"Delete of bookmark {bookmark_id} by user {user.id} matched no row")
            self._fail(BookmarkNotFoundError("Bookmark not found."))
            return False

        self.state.bookmarks = [b for b in self.state.bookmarks if b.id != bookmark_id]
        self.state.message = "Bookmark deleted."
        return True

    async def apply_change(self, payload: Any = None) -> bool:
        """Handle a realtime notification by re-fetching the whole list.

        The payload is not applied as a diff.
        """
        return await self.refresh()

"""Repository for bookmark rows stored in Supabase.

All operations are scoped to a single owner: every query filters on
``user_id`` in addition to whatever row-level security enforces.
"""

import logging
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from ..errors import RemoteOperationError
from ..models import Bookmark, BookmarkDraft

logger = logging.getLogger(__name__)

TABLE = "bookmarks"


class BookmarkRepository:
    """Repository for bookmark operations."""

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def list_for_user(self, user_id: UUID) -> list[Bookmark]:
        """List a user's bookmarks, newest first.

        Args:
            user_id: The owner's UUID (matches auth.users.id)

        Returns:
            Bookmarks ordered by created_at descending

        Raises:
            RemoteOperationError: If the backend request fails
        """
        try:
            response = await (
                self.client.table(TABLE)
                .select("*")
                .eq("user_id", str(user_id))
                .order("created_at", desc=True)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Listing bookmarks for user {user_id} failed: {e}")
            raise RemoteOperationError("Could not load bookmarks.") from e

        return [Bookmark.model_validate(row) for row in response.data]

    async def create(self, user_id: UUID, draft: BookmarkDraft) -> Bookmark:
        """Insert a new bookmark owned by the given user.

        Args:
            user_id: The owner's UUID, taken from the current session
            draft: Validated title and normalized url

        Returns:
            Created bookmark with server-assigned id and created_at

        Raises:
            RemoteOperationError: If the insert fails
        """
        try:
            response = await (
                self.client.table(TABLE)
                .insert(
                    {
                        "title": draft.title,
                        "url": draft.url,
                        "user_id": str(user_id),
                    }
                )
                .execute()
            )
        except APIError as e:
            logger.error(f"Creating bookmark for user {user_id} failed: {e}")
            raise RemoteOperationError(e.message or "Could not add bookmark.") from e
        except httpx.HTTPError as e:
            logger.error(f"Creating bookmark for user {user_id} failed: {e}")
            raise RemoteOperationError("Could not add bookmark.") from e

        if not response.data:
            raise RemoteOperationError("Could not add bookmark.")
        return Bookmark.model_validate(response.data[0])

    async def delete(self, bookmark_id: UUID, user_id: UUID) -> int:
        """Delete a bookmark matching both its id and its owner.

        Args:
            bookmark_id: The bookmark's UUID
            user_id: The caller's UUID

        Returns:
            Number of rows removed (0 if no row matched both)

        Raises:
            RemoteOperationError: If the delete fails
        """
        try:
            response = await (
                self.client.table(TABLE)
                .delete()
                .eq("id", str(bookmark_id))
                .eq("user_id", str(user_id))
                .execute()
            )
        except APIError as e:
            logger.error(f"Deleting bookmark {bookmark_id} failed: {e}")
            raise RemoteOperationError(e.message or "Could not delete bookmark.") from e
        except httpx.HTTPError as e:
            logger.error(f"Deleting bookmark {bookmark_id} failed: {e}")
            raise RemoteOperationError("Could not delete bookmark.") from e

        return len(response.data or [])

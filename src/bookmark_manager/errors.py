"""Exceptions raised by bookmark operations."""


class BookmarkError(Exception):
    """Base class for bookmark manager errors.

    The message is short and safe to show to the user.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BookmarkValidationError(BookmarkError):
    """Input rejected locally, before any network call."""


class RemoteOperationError(BookmarkError):
    """The backend or the network failed on a list, insert or delete."""


class AuthError(BookmarkError):
    """Starting or completing the OAuth sign-in failed."""


class BookmarkNotFoundError(BookmarkError):
    """A delete matched no row owned by the caller."""

"""Tests for bookmark models and URL normalization."""

import pytest

from bookmark_manager.errors import BookmarkValidationError
from bookmark_manager.models import BookmarkDraft, normalize_url


@pytest.mark.parametrize(
    "url",
    ["example.com", "www.example.com/path?q=1", "ftp://files.example.com", "not a host"],
)
def test_normalize_url_prefixes_https(url: str) -> None:
    assert normalize_url(url) == f"https://{url}"


@pytest.mark.parametrize(
    "url",
    ["http://example.com", "https://example.com", "https://"],
)
def test_normalize_url_keeps_http_schemes(url: str) -> None:
    assert normalize_url(url) == url


def test_draft_trims_and_normalizes() -> None:
    draft = BookmarkDraft.from_input("  Example  ", "  example.com ")
    assert draft.title == "Example"
    assert draft.url == "https://example.com"


@pytest.mark.parametrize(
    ("title", "url"),
    [("", "example.com"), ("Example", ""), ("   ", "example.com"), ("Example", "\t\n"), (None, None)],
)
def test_draft_rejects_blank_input(title: str | None, url: str | None) -> None:
    with pytest.raises(BookmarkValidationError) as exc_info:
        BookmarkDraft.from_input(title, url)
    assert exc_info.value.message == "Title and URL are required."

"""Bookmark Manager - personal bookmarks on Supabase with live updates."""

__version__ = "0.1.0"

"""Web UI for the bookmark manager."""

"""Bookmark, edit and reuse commands from your shell history."""

__version__ = "0.1.0"

"""Bookmark toolkit: records, URL cleaning, configuration, import/export, checks, updates and thumbnails."""

__version__ = "1.0.0"
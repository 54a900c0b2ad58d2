"""
Bookmark sources.

This package provides the source protocol and the built-in readers for
Chromium-family browsers, Firefox, Safari and exported bookmark files.
"""

from .chromium import ChromiumSource
from .file_import import FileImportSource
from .firefox import FirefoxSource
from .protocol import BookmarkSource, is_cancelled
from .safari import SafariSource

__all__ = [
    "BookmarkSource",
    "ChromiumSource",
    "FileImportSource",
    "FirefoxSource",
    "SafariSource",
    "is_cancelled",
]

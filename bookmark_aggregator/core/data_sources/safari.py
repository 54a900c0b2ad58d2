"""
Safari bookmark source.

Safari keeps every bookmark in ``~/Library/Safari/Bookmarks.plist``, a
binary property list of nested ``WebBookmarkTypeList`` folders and
``WebBookmarkTypeLeaf`` entries. Safari has no profiles; records are
labelled ``default``.
"""

import logging
import plistlib
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...utils.error_handler import ReadFailureError
from ..data_models import BookmarkRecord, ProfileInfo, SourceOptions
from .protocol import is_cancelled

SAFARI_PROFILE = "default"

logger = logging.getLogger(__name__)


class SafariSource:
    """Bookmark source for Apple Safari (macOS only unless a path is given)."""

    name = "safari"
    display_name = "Apple Safari"

    def __init__(self, plist_path: Optional[str] = None):
        self._explicit_path = plist_path
        self.options = SourceOptions()

    @property
    def path(self) -> str:
        if self.options.custom_path:
            return self.options.custom_path
        if self._explicit_path:
            return self._explicit_path
        if sys.platform != "darwin":
            return ""
        return str(Path.home() / "Library" / "Safari" / "Bookmarks.plist")

    def available(self) -> bool:
        path = self.path
        return bool(path) and Path(path).expanduser().is_file()

    def configure(self, options: SourceOptions) -> None:
        self.options = options

    def list_profiles(self) -> List[ProfileInfo]:
        if not self.available():
            return []
        return [ProfileInfo(name=SAFARI_PROFILE, path=self.path, is_default=True)]

    def read(self, cancel: Optional[threading.Event] = None) -> List[BookmarkRecord]:
        path = self.path
        if not path or is_cancelled(cancel):
            return []

        try:
            with open(Path(path).expanduser(), "rb") as f:
                root = plistlib.load(f)
        except (OSError, plistlib.InvalidFileException, ValueError) as e:
            raise ReadFailureError(
                f"cannot read {path}", source_name=self.name, original_error=e
            )

        records: List[BookmarkRecord] = []
        if isinstance(root, dict):
            self._walk(root, [], records)
        logger.debug(f"Read {len(records)} bookmarks from {path}")
        return records

    def _walk(self, node: Dict[str, Any], path: List[str], records: List[BookmarkRecord]) -> None:
        node_type = node.get("WebBookmarkType")
        uri_dict = node.get("URIDictionary") or {}

        if node_type == "WebBookmarkTypeLeaf":
            url = node.get("URLString") or uri_dict.get("", "")
            if not url:
                return
            title = node.get("Title") or uri_dict.get("title") or url
            records.append(
                BookmarkRecord(
                    url=url,
                    title=title,
                    folder_path=list(path),
                    source_name=self.name,
                    profile=SAFARI_PROFILE,
                )
            )
            return

        child_path = path
        if node_type == "WebBookmarkTypeList" and node.get("Title"):
            child_path = path + [node["Title"]]
        for child in node.get("Children") or []:
            if isinstance(child, dict):
                self._walk(child, child_path, records)

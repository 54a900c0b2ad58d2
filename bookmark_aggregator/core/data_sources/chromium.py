"""
Chromium-family bookmark source.

Chrome, Edge, Chromium and Brave all keep a ``Bookmarks`` JSON file in
each profile directory (``Default``, ``Profile 1``, ...). One class
serves all four; the browser name selects the profile root.
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...utils.error_handler import ConfigInvalidError, ReadFailureError
from ..data_models import BookmarkRecord, ProfileInfo, SourceOptions
from .protocol import is_cancelled

# Per-browser profile roots, relative to the home directory
# (LOCALAPPDATA on Windows)
CHROMIUM_PATHS: Dict[str, Dict[str, str]] = {
    "chrome": {
        "linux": ".config/google-chrome",
        "darwin": "Library/Application Support/Google/Chrome",
        "win32": "Google/Chrome/User Data",
    },
    "edge": {
        "linux": ".config/microsoft-edge",
        "darwin": "Library/Application Support/Microsoft Edge",
        "win32": "Microsoft/Edge/User Data",
    },
    "chromium": {
        "linux": ".config/chromium",
        "darwin": "Library/Application Support/Chromium",
        "win32": "Chromium/User Data",
    },
    "brave": {
        "linux": ".config/BraveSoftware/Brave-Browser",
        "darwin": "Library/Application Support/BraveSoftware/Brave-Browser",
        "win32": "BraveSoftware/Brave-Browser/User Data",
    },
}

DISPLAY_NAMES = {
    "chrome": "Google Chrome",
    "edge": "Microsoft Edge",
    "chromium": "Chromium",
    "brave": "Brave",
}

# Chromium timestamps count microseconds from 1601-01-01 UTC
CHROMIUM_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

CUSTOM_PROFILE = "custom"


def parse_chromium_timestamp(value: Union[str, int, None]) -> Optional[datetime]:
    """
    Convert a Chromium ``date_added`` value to a UTC datetime.

    Missing, zero and malformed values yield None.
    """
    if value in (None, ""):
        return None
    try:
        micros = int(value)
    except (TypeError, ValueError):
        return None
    if micros <= 0:
        return None
    try:
        return CHROMIUM_EPOCH + timedelta(microseconds=micros)
    except OverflowError:
        return None


def default_profile_root(browser: str) -> Optional[Path]:
    """Return the platform profile root for ``browser``, or None if unknown."""
    platform_key = "win32" if sys.platform.startswith("win") else sys.platform
    if platform_key.startswith("linux"):
        platform_key = "linux"
    relative = CHROMIUM_PATHS.get(browser, {}).get(platform_key)
    if relative is None:
        return None
    if platform_key == "win32":
        base = os.environ.get("LOCALAPPDATA")
        if not base:
            return None
        return Path(base) / relative
    return Path.home() / relative


class ChromiumSource:
    """
    Bookmark source for a Chromium-based browser.

    Example:
        >>> source = ChromiumSource("brave")
        >>> source.configure(SourceOptions(profile="Profile 1"))
        >>> records = source.read()
    """

    def __init__(self, browser: str, base_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the source.

        Args:
            browser: One of chrome, edge, chromium, brave (any name works
                when ``base_dir`` is given)
            base_dir: Profile root override, mainly for tests
        """
        self.browser = browser.lower()
        self.base_dir = Path(base_dir) if base_dir else default_profile_root(self.browser)
        self.options = SourceOptions()
        self.logger = logging.getLogger(f"{__name__}.{self.browser}")
        self._profiles: List[ProfileInfo] = self._discover_profiles()

    @property
    def name(self) -> str:
        return self.browser

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES.get(self.browser, self.browser.title())

    @property
    def path(self) -> str:
        if self.options.custom_path:
            return self.options.custom_path
        base = str(self.base_dir) if self.base_dir else ""
        if not self._profiles:
            return f"{base} (no profiles found)" if base else ""
        if len(self._profiles) == 1:
            return self._profiles[0].path
        names = ", ".join(p.name for p in self._profiles)
        return f"{base} [{names}]"

    def available(self) -> bool:
        if self.options.custom_path:
            return Path(self.options.custom_path).expanduser().is_file()
        return bool(self._profiles)

    def configure(self, options: SourceOptions) -> None:
        if options.custom_path and Path(options.custom_path).expanduser().is_dir():
            raise ConfigInvalidError(
                f"custom path {options.custom_path} is a directory, expected a Bookmarks file",
                source_name=self.name,
            )
        self.options = options
        if not options.custom_path:
            self._profiles = self._discover_profiles()

    def list_profiles(self) -> List[ProfileInfo]:
        return list(self._profiles)

    def read(self, cancel: Optional[threading.Event] = None) -> List[BookmarkRecord]:
        if self.options.custom_path:
            return self._read_file(Path(self.options.custom_path).expanduser(), CUSTOM_PROFILE)

        if not self._profiles:
            return []

        requested = self.options.profile
        if requested:
            for profile in self._profiles:
                if profile.name == requested:
                    return self._read_file(Path(profile.path), profile.name)
            # "Default" falls back to the first discovered profile
            if requested == "Default":
                first = self._profiles[0]
                return self._read_file(Path(first.path), first.name)
            self.logger.warning(f"Profile {requested!r} not found for {self.name}")
            return []

        records: List[BookmarkRecord] = []
        for profile in self._profiles:
            if is_cancelled(cancel):
                break
            try:
                records.extend(self._read_file(Path(profile.path), profile.name))
            except ReadFailureError as e:
                self.logger.warning(f"Skipping profile {profile.name}: {e}")
        return records

    def _discover_profiles(self) -> List[ProfileInfo]:
        if self.base_dir is None or not self.base_dir.is_dir():
            return []

        profiles = []
        try:
            entries = sorted(self.base_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            self.logger.debug(f"Cannot list {self.base_dir}: {e}")
            return []

        for entry in entries:
            if not entry.is_dir():
                continue
            if entry.name != "Default" and not entry.name.startswith("Profile "):
                continue
            bookmarks_file = entry / "Bookmarks"
            if bookmarks_file.is_file():
                profiles.append(ProfileInfo(name=entry.name, path=str(bookmarks_file)))

        # "Default" first, then "Profile N" in directory order
        profiles.sort(key=lambda p: p.name != "Default")
        for index, profile in enumerate(profiles):
            profile.is_default = index == 0
        return profiles

    def _read_file(self, path: Path, profile: str) -> List[BookmarkRecord]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ReadFailureError(
                f"cannot read bookmarks file {path}", source_name=self.name, original_error=e
            )

        roots = data.get("roots") if isinstance(data, dict) else None
        if not isinstance(roots, dict):
            raise ReadFailureError(
                f"bookmarks file {path} has no 'roots' object", source_name=self.name
            )

        records: List[BookmarkRecord] = []
        for node in roots.values():
            if isinstance(node, dict) and node.get("type") == "folder":
                self._walk_folder(node, [], profile, records)

        self.logger.debug(f"Read {len(records)} bookmarks from {path}")
        return records

    def _walk_folder(
        self,
        node: Dict[str, Any],
        parent_path: List[str],
        profile: str,
        records: List[BookmarkRecord],
    ) -> None:
        name = node.get("name")
        path = parent_path + [name] if isinstance(name, str) and name else parent_path

        children = node.get("children")
        if not isinstance(children, list):
            return

        for child in children:
            if not isinstance(child, dict):
                continue
            child_type = child.get("type")
            if child_type == "url":
                url = child.get("url")
                if not isinstance(url, str) or not url:
                    continue
                title = child.get("name")
                records.append(
                    BookmarkRecord(
                        url=url,
                        title=title if isinstance(title, str) else "",
                        folder_path=list(path),
                        date_added=parse_chromium_timestamp(child.get("date_added")),
                        source_name=self.browser,
                        profile=profile,
                    )
                )
            elif child_type == "folder":
                self._walk_folder(child, path, profile, records)

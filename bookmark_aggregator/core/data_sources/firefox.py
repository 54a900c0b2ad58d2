"""
Firefox bookmark source.

Firefox stores bookmarks in ``places.sqlite`` inside each profile
directory. The browser keeps that database locked while running, so the
reader copies it to a temporary file and opens the copy read-only.
"""

import logging
import os
import shutil
import sqlite3
import sys
import tempfile
import threading
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ...utils.error_handler import ReadFailureError
from ..data_models import BookmarkRecord, ProfileInfo, SourceOptions
from .protocol import is_cancelled

FIREFOX_PATHS = {
    "linux": ".mozilla/firefox",
    "darwin": "Library/Application Support/Firefox/Profiles",
    "win32": "Mozilla/Firefox/Profiles",
}

PLACES_FILE = "places.sqlite"

# Well-known moz_bookmarks ids and types
TAGS_ROOT_ID = 4
TYPE_BOOKMARK = 1
TYPE_FOLDER = 2

FOLDERS_QUERY = "SELECT id, parent, title FROM moz_bookmarks WHERE type = ?"

TAGS_QUERY = """
    SELECT p.url, tag_folder.title
    FROM moz_bookmarks b
    JOIN moz_places p ON b.fk = p.id
    JOIN moz_bookmarks tag_folder ON b.parent = tag_folder.id
    WHERE tag_folder.parent = ?
      AND p.url IS NOT NULL
      AND tag_folder.title IS NOT NULL
"""

BOOKMARKS_QUERY = """
    SELECT b.id, b.title, p.url, b.parent, b.dateAdded
    FROM moz_bookmarks b
    JOIN moz_places p ON b.fk = p.id
    WHERE b.type = ?
      AND p.url IS NOT NULL
      AND p.url NOT LIKE 'place:%'
    ORDER BY b.parent, b.position, b.id
"""


def default_profiles_dir() -> Optional[Path]:
    """Return the platform Firefox profiles directory, or None if unknown."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA")
        return Path(base) / FIREFOX_PATHS["win32"] if base else None
    key = "linux" if sys.platform.startswith("linux") else sys.platform
    relative = FIREFOX_PATHS.get(key)
    return Path.home() / relative if relative else None


def parse_firefox_timestamp(value: Optional[int]) -> Optional[datetime]:
    """Convert a ``dateAdded`` value (microseconds since the epoch) to UTC."""
    if not value or value <= 0:
        return None
    try:
        return datetime.fromtimestamp(value / 1_000_000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class FirefoxSource:
    """Bookmark source for Mozilla Firefox profiles."""

    name = "firefox"
    display_name = "Mozilla Firefox"

    def __init__(self, profiles_dir: Optional[Union[str, Path]] = None):
        self.profiles_dir = Path(profiles_dir) if profiles_dir else default_profiles_dir()
        self.options = SourceOptions()
        self.logger = logging.getLogger(__name__)
        self._db_path, self._profile = self._find_database()

    @property
    def path(self) -> str:
        return str(self._db_path) if self._db_path else ""

    def available(self) -> bool:
        return self._db_path is not None and self._db_path.is_file()

    def configure(self, options: SourceOptions) -> None:
        self.options = options
        self._db_path, self._profile = self._find_database()

    def list_profiles(self) -> List[ProfileInfo]:
        profiles = []
        for entry in self._profile_dirs():
            places = entry / PLACES_FILE
            profiles.append(
                ProfileInfo(
                    name=entry.name,
                    path=str(places),
                    is_default=entry.name == self._profile,
                )
            )
        return profiles

    def read(self, cancel: Optional[threading.Event] = None) -> List[BookmarkRecord]:
        if self._db_path is None or is_cancelled(cancel):
            return []
        if not self._db_path.is_file():
            raise ReadFailureError(
                f"places database {self._db_path} not found", source_name=self.name
            )

        fd, tmp_name = tempfile.mkstemp(prefix="firefox-places-", suffix=".sqlite")
        os.close(fd)
        try:
            shutil.copyfile(self._db_path, tmp_name)
            uri = Path(tmp_name).as_uri() + "?mode=ro"
            with closing(sqlite3.connect(uri, uri=True)) as conn:
                records = self._read_database(conn)
        except (OSError, sqlite3.Error) as e:
            raise ReadFailureError(
                f"cannot read places database {self._db_path}",
                source_name=self.name,
                original_error=e,
            )
        finally:
            try:
                os.remove(tmp_name)
            except OSError as e:
                self.logger.debug(f"Could not remove temporary copy {tmp_name}: {e}")

        self.logger.debug(f"Read {len(records)} bookmarks from {self._db_path}")
        return records

    def _profile_dirs(self) -> List[Path]:
        if self.profiles_dir is None or not self.profiles_dir.is_dir():
            return []
        try:
            entries = sorted(self.profiles_dir.iterdir(), key=lambda p: p.name)
        except OSError:
            return []
        return [e for e in entries if e.is_dir() and (e / PLACES_FILE).is_file()]

    def _find_database(self) -> Tuple[Optional[Path], str]:
        if self.options.custom_path:
            custom = Path(self.options.custom_path).expanduser()
            return custom, custom.parent.name

        candidates = self._profile_dirs()
        requested = self.options.profile
        if requested:
            for entry in candidates:
                if entry.name == requested:
                    return entry / PLACES_FILE, entry.name
            # Firefox profile directories are never literally named "Default"
            if requested != "Default" and self.profiles_dir is not None:
                return self.profiles_dir / requested / PLACES_FILE, requested

        if candidates:
            return candidates[0] / PLACES_FILE, candidates[0].name
        return None, ""

    def _read_database(self, conn: sqlite3.Connection) -> List[BookmarkRecord]:
        folders: Dict[int, Tuple[int, str]] = {}
        for folder_id, parent, title in conn.execute(FOLDERS_QUERY, (TYPE_FOLDER,)):
            folders[folder_id] = (parent, title or "")

        tags_by_url: Dict[str, List[str]] = {}
        for url, tag in conn.execute(TAGS_QUERY, (TAGS_ROOT_ID,)):
            tags_by_url.setdefault(url, []).append(tag)

        records: List[BookmarkRecord] = []
        seen = set()
        for _, title, url, parent, date_added in conn.execute(BOOKMARKS_QUERY, (TYPE_BOOKMARK,)):
            if not url or url in seen:
                continue
            if self._under_tags_root(parent, folders):
                continue
            seen.add(url)

            records.append(
                BookmarkRecord(
                    url=url,
                    title=title or url,
                    folder_path=self._folder_path(parent, folders),
                    date_added=parse_firefox_timestamp(date_added),
                    source_name=self.name,
                    profile=self._profile,
                    tags=list(tags_by_url.get(url, [])),
                )
            )
        return records

    @staticmethod
    def _folder_path(parent: int, folders: Dict[int, Tuple[int, str]]) -> List[str]:
        path: List[str] = []
        current = parent
        visited = set()
        while current in folders and current not in visited:
            visited.add(current)
            current_parent, title = folders[current]
            if title:
                path.insert(0, title)
            current = current_parent
        return path

    @staticmethod
    def _under_tags_root(parent: int, folders: Dict[int, Tuple[int, str]]) -> bool:
        current = parent
        for _ in range(10):
            if current == TAGS_ROOT_ID:
                return True
            if current not in folders:
                return False
            current = folders[current][0]
        return False

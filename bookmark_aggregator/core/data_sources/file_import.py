"""
Import-file bookmark source.

Reads a bookmark file named in the configuration: either a Netscape
bookmark HTML file (as exported by every major browser) or an OPML
outline. Records are labelled with the ``import`` profile.
"""

import logging
import threading
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from ...utils.error_handler import ReadFailureError
from ..data_models import BookmarkRecord, ProfileInfo, SourceOptions
from .protocol import is_cancelled

IMPORT_PROFILE = "import"


def looks_like_netscape_html(content: str) -> bool:
    """Return True if ``content`` is a Netscape bookmark file rather than OPML."""
    upper = content[:4096].upper()
    return "NETSCAPE-BOOKMARK-FILE" in upper or "<DL>" in upper or "<DL " in upper


def parse_unix_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ADD_DATE attribute (seconds since the epoch)."""
    if not value:
        return None
    try:
        seconds = int(value)
    except ValueError:
        return None
    if seconds <= 0:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_rfc822_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an OPML ``created`` attribute (RFC 822 date)."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


class FileImportSource:
    """
    Bookmark source for exported bookmark files.

    The source is only available once a file path is configured.

    Example:
        >>> source = FileImportSource()
        >>> source.configure(SourceOptions(custom_path="bookmarks.html"))
        >>> records = source.read()
    """

    name = "opml"
    display_name = "OPML/HTML Import"

    def __init__(self) -> None:
        self.options = SourceOptions()
        self.logger = logging.getLogger(__name__)

    @property
    def path(self) -> str:
        return self.options.custom_path

    def available(self) -> bool:
        return bool(self.options.custom_path)

    def configure(self, options: SourceOptions) -> None:
        self.options = options

    def list_profiles(self) -> List[ProfileInfo]:
        if not self.available():
            return []
        return [ProfileInfo(name=IMPORT_PROFILE, path=self.path, is_default=True)]

    def read(self, cancel: Optional[threading.Event] = None) -> List[BookmarkRecord]:
        if not self.options.custom_path:
            raise ReadFailureError("no import file configured", source_name=self.name)
        if is_cancelled(cancel):
            return []

        path = Path(self.options.custom_path).expanduser()
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ReadFailureError(
                f"cannot read import file {path}", source_name=self.name, original_error=e
            )

        if looks_like_netscape_html(content):
            records = self.parse_netscape_html(content)
        else:
            records = self.parse_opml(content)
        self.logger.info(f"Imported {len(records)} bookmarks from {path}")
        return records

    def parse_netscape_html(self, content: str) -> List[BookmarkRecord]:
        """
        Parse a Netscape bookmark file.

        Each ``<A>`` becomes a record; its folder path is the chain of
        ``<H3>`` headings that introduce the enclosing ``<DL>`` lists.

        Args:
            content: HTML content of the bookmark file

        Returns:
            Records in document order
        """
        soup = BeautifulSoup(content, "html.parser")
        records: List[BookmarkRecord] = []

        for link in soup.find_all("a"):
            url = (link.get("href") or "").strip()
            if not url:
                continue
            tags_attr = link.get("tags") or ""
            records.append(
                BookmarkRecord(
                    url=url,
                    title=link.get_text(strip=True),
                    folder_path=self._html_folder_path(link),
                    date_added=parse_unix_timestamp(link.get("add_date")),
                    source_name=self.name,
                    profile=IMPORT_PROFILE,
                    tags=[t.strip() for t in tags_attr.split(",") if t.strip()],
                )
            )
        return records

    @staticmethod
    def _html_folder_path(link: Tag) -> List[str]:
        path = []
        for dl in link.find_parents("dl"):
            heading = dl.find_previous_sibling()
            if heading is not None and heading.name == "h3":
                path.insert(0, heading.get_text(strip=True))
        return path

    def parse_opml(self, content: str) -> List[BookmarkRecord]:
        """
        Parse an OPML outline.

        Outlines with children are folders; leaf outlines need an
        ``htmlUrl`` (or, for feeds, an ``xmlUrl``).

        Raises:
            ReadFailureError: If the document is not well-formed XML
        """
        try:
            root = ET.fromstring(content)  # nosec B314 - local user-supplied file
        except ET.ParseError as e:
            raise ReadFailureError("cannot parse OPML", source_name=self.name, original_error=e)

        body = root.find("body")
        records: List[BookmarkRecord] = []
        if body is not None:
            self._walk_outlines(body, [], records)
        return records

    def _walk_outlines(self, parent: ET.Element, path: List[str], records: List[BookmarkRecord]) -> None:
        for outline in parent.findall("outline"):
            title = outline.get("text") or outline.get("title") or ""
            if len(outline):
                self._walk_outlines(outline, path + [title], records)
                continue

            url = outline.get("htmlUrl") or outline.get("xmlUrl") or ""
            if not url:
                continue
            category = outline.get("category") or ""
            records.append(
                BookmarkRecord(
                    url=url,
                    title=title,
                    folder_path=list(path),
                    date_added=parse_rfc822_date(outline.get("created")),
                    source_name=self.name,
                    profile=IMPORT_PROFILE,
                    tags=[t.strip() for t in category.split(",") if t.strip()],
                )
            )

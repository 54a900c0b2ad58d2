"""
Data models for the Bookmark Aggregator.

This module defines the internal data structures used to represent
bookmarks, the sources they came from, and the options that flow
through the read, filter and render stages.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence


@dataclass
class BookmarkRecord:
    """
    A single bookmark as produced by a source reader.

    Readers never emit a record with an empty URL. A missing ``date_added``
    is represented by None, which is distinct from the epoch.
    """

    url: str
    title: str = ""
    folder_path: List[str] = field(default_factory=list)
    date_added: Optional[datetime] = None
    source_name: str = ""
    profile: str = ""
    tags: List[str] = field(default_factory=list)

    def get_folder_path(self, separator: str = "/") -> str:
        """Return the folder path joined with ``separator``."""
        return separator.join(self.folder_path)

    def get_effective_title(self) -> str:
        """Return the title, falling back to the URL when the title is blank."""
        return self.title.strip() or self.url

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a JSON-friendly dictionary."""
        return {
            "title": self.title,
            "url": self.url,
            "folder": self.get_folder_path(),
            "date_added": self.date_added.isoformat() if self.date_added else None,
            "tags": list(self.tags),
            "source": self.source_name,
            "profile": self.profile,
        }


@dataclass(frozen=True)
class SourceDescriptor:
    """Describes one successful read from one source profile."""

    name: str
    profile: str = ""
    path: str = ""
    count: int = 0


@dataclass
class ProfileInfo:
    """A profile discovered by a source reader."""

    name: str
    path: str = ""
    is_default: bool = False


@dataclass
class SourceOptions:
    """
    Options handed to a source reader before it reads.

    An empty ``profile`` means "read every profile". ``options`` is a
    free-form mapping for reader-specific settings and opaque credentials.
    """

    enabled: bool = True
    profile: str = ""
    custom_path: str = ""
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RendererOptions:
    """Options handed to a renderer before it renders."""

    enabled: bool = True
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RenderOptions:
    """Per-render switches controlling what a renderer emits."""

    include_metadata: bool = True
    include_dates: bool = True
    include_tags: bool = True
    include_profile: bool = True
    group_by_source: bool = True
    sort_alpha: bool = False
    style: str = ""

    @classmethod
    def default(cls) -> "RenderOptions":
        return cls()


@dataclass
class FilterRule:
    """
    Declarative filter rules.

    A ``max_url_length`` or ``warn_url_length`` of 0 disables that check.
    """

    include_folders: List[str] = field(default_factory=list)
    exclude_folders: List[str] = field(default_factory=list)
    exclude_url_patterns: List[str] = field(default_factory=list)
    exclude_schemes: List[str] = field(default_factory=list)
    warn_schemes: List[str] = field(default_factory=list)
    max_url_length: int = 0
    warn_url_length: int = 0


@dataclass
class FilterOutcome:
    """Result of applying a FilterRule to a list of records."""

    kept: List[BookmarkRecord] = field(default_factory=list)
    excluded_count: int = 0
    warnings: List[str] = field(default_factory=list)


class Collection:
    """
    Ordered bookmark records together with the sources that produced them.

    The sum of the descriptor counts always equals the number of records.
    Records and descriptors are only ever added together through ``add``;
    derived collections are built with ``narrowed`` or ``for_source``.
    """

    def __init__(self) -> None:
        self._bookmarks: List[BookmarkRecord] = []
        self._origins: List[int] = []
        self._sources: List[SourceDescriptor] = []

    @property
    def bookmarks(self) -> List[BookmarkRecord]:
        """Records in insertion order (a copy)."""
        return list(self._bookmarks)

    @property
    def sources(self) -> List[SourceDescriptor]:
        """Source descriptors in insertion order (a copy)."""
        return list(self._sources)

    def __len__(self) -> int:
        return len(self._bookmarks)

    def __iter__(self):
        return iter(list(self._bookmarks))

    def add(
        self, records: Sequence[BookmarkRecord], descriptor: SourceDescriptor
    ) -> SourceDescriptor:
        """
        Append the records of one source read.

        Args:
            records: Records returned by the source
            descriptor: Descriptor of the read; its count is replaced

        Returns:
            The stored descriptor with ``count == len(records)``
        """
        stored = replace(descriptor, count=len(records))
        index = len(self._sources)
        self._sources.append(stored)
        self._bookmarks.extend(records)
        self._origins.extend([index] * len(records))
        return stored

    def narrowed(self, records: Iterable[BookmarkRecord]) -> "Collection":
        """
        Build a collection holding ``records`` with recomputed counts.

        ``records`` must be records of this collection (for example the
        output of filtering, deduplication or sorting). Their order is kept.

        Raises:
            ValueError: If a record does not belong to this collection
        """
        origin_by_id = {id(r): o for r, o in zip(self._bookmarks, self._origins)}
        kept = list(records)

        result = Collection()
        counts = [0] * len(self._sources)
        for record in kept:
            origin = origin_by_id.get(id(record))
            if origin is None:
                raise ValueError(f"record {record.url!r} is not part of this collection")
            counts[origin] += 1
            result._bookmarks.append(record)
            result._origins.append(origin)
        result._sources = [
            replace(descriptor, count=count)
            for descriptor, count in zip(self._sources, counts)
        ]
        return result

    def for_source(self, name: str) -> "Collection":
        """Restrict the collection to descriptors named ``name``."""
        result = Collection()
        remap: Dict[int, int] = {}
        for index, descriptor in enumerate(self._sources):
            if descriptor.name == name:
                remap[index] = len(result._sources)
                result._sources.append(descriptor)
        for record, origin in zip(self._bookmarks, self._origins):
            if origin in remap:
                result._bookmarks.append(record)
                result._origins.append(remap[origin])
        return result

    def __repr__(self) -> str:
        return f"Collection(bookmarks={len(self._bookmarks)}, sources={len(self._sources)})"

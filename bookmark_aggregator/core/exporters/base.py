"""
Base classes for bookmark renderers.

This module provides the renderer protocol used by the adapter registry,
a small base class carrying the shared configuration handling, and
helpers common to every output format.
"""

import logging
import platform
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol, Tuple, runtime_checkable

from ...utils.error_handler import ConfigInvalidError
from ..data_models import BookmarkRecord, Collection, RendererOptions, RenderOptions


@runtime_checkable
class BookmarkRenderer(Protocol):
    """
    Protocol for renderers.

    A renderer turns a Collection into bytes in one output format.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def display_name(self) -> str:
        ...

    @property
    def file_extensions(self) -> List[str]:
        ...

    def configure(self, options: RendererOptions) -> None:
        ...

    def render(self, collection: Collection, options: RenderOptions) -> bytes:
        ...


class BaseRenderer(ABC):
    """
    Shared behaviour for the built-in renderers.

    Subclasses define ``name``, ``display_name`` and ``file_extensions``
    and implement ``render``.

    Example:
        >>> renderer = JSONRenderer()
        >>> renderer.configure(RendererOptions(options={"indent": 4}))
        >>> data = renderer.render(collection, RenderOptions.default())
    """

    name: str = ""
    display_name: str = ""
    file_extensions: List[str] = []

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.options: Dict[str, Any] = {}

    def configure(self, options: RendererOptions) -> None:
        """
        Store renderer options.

        Raises:
            ConfigInvalidError: If an option has the wrong type
        """
        if not isinstance(options.options, dict):
            raise ConfigInvalidError(
                "renderer options must be a mapping", source_name=self.name
            )
        self.options = dict(options.options)
        self.validate_options()

    def validate_options(self) -> None:
        """Hook for subclasses to reject bad options."""

    @abstractmethod
    def render(self, collection: Collection, options: RenderOptions) -> bytes:
        """
        Render a collection.

        Args:
            collection: Bookmarks and their source descriptors
            options: Per-render switches

        Returns:
            Encoded output (UTF-8 for the text formats)
        """
        pass


def generated_at() -> datetime:
    """Timestamp stamped into rendered metadata."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def platform_name() -> str:
    """Short platform label, e.g. ``linux/x86_64``."""
    return f"{platform.system().lower()}/{platform.machine().lower()}"


def format_sources(collection: Collection, include_profile: bool = True) -> str:
    """Describe the sources of a collection, e.g. ``chrome/Default, firefox``."""
    parts = []
    for descriptor in collection.sources:
        if include_profile and descriptor.profile:
            parts.append(f"{descriptor.name}/{descriptor.profile}")
        else:
            parts.append(descriptor.name)
    return ", ".join(parts)


def group_by_source_profile(
    records: List[BookmarkRecord],
) -> "OrderedDict[Tuple[str, str], List[BookmarkRecord]]":
    """Group records by (source, profile), keeping first-seen order."""
    groups: "OrderedDict[Tuple[str, str], List[BookmarkRecord]]" = OrderedDict()
    for record in records:
        groups.setdefault((record.source_name, record.profile), []).append(record)
    return groups


def sorted_records(records: List[BookmarkRecord], sort_alpha: bool) -> List[BookmarkRecord]:
    """Return records sorted case-insensitively by title when requested."""
    if not sort_alpha:
        return list(records)
    return sorted(records, key=lambda r: r.get_effective_title().lower())


__all__ = [
    "BookmarkRenderer",
    "BaseRenderer",
    "format_sources",
    "generated_at",
    "group_by_source_profile",
    "platform_name",
    "sorted_records",
]

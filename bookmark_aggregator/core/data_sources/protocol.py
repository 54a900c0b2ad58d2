"""
Source Reader Protocol for Bookmark Aggregation.

This module defines the interface every bookmark source implements,
whether it reads a browser profile on disk or an import file.
"""

import threading
from typing import List, Optional, Protocol, runtime_checkable

from ..data_models import BookmarkRecord, ProfileInfo, SourceOptions


@runtime_checkable
class BookmarkSource(Protocol):
    """
    Protocol for bookmark sources.

    A source is configured once per read with ``configure`` and then read
    with ``read``. ``available`` must be cheap: it is called for every
    registered source whenever the aggregator picks a default source or
    lists resources.

    Example Usage:
        >>> source = ChromiumSource("chrome")
        >>> if source.available():
        ...     source.configure(SourceOptions(profile="Default"))
        ...     records = source.read()
    """

    @property
    def name(self) -> str:
        """Unique lowercase identifier, e.g. ``chrome``."""
        ...

    @property
    def display_name(self) -> str:
        """Human-readable name, e.g. ``Google Chrome``."""
        ...

    @property
    def path(self) -> str:
        """Location of the backing data, empty if unknown."""
        ...

    def available(self) -> bool:
        """Return True if the backing data for this source is present."""
        ...

    def configure(self, options: SourceOptions) -> None:
        """
        Apply options before a read.

        Raises:
            ConfigInvalidError: If the options are rejected
        """
        ...

    def list_profiles(self) -> List[ProfileInfo]:
        """Return the profiles this source can read."""
        ...

    def read(self, cancel: Optional[threading.Event] = None) -> List[BookmarkRecord]:
        """
        Read every bookmark of the configured profile(s).

        Args:
            cancel: Optional event; readers stop early once it is set

        Returns:
            Records with non-empty URLs

        Raises:
            ReadFailureError: If the backing data cannot be read
        """
        ...


def is_cancelled(cancel: Optional[threading.Event]) -> bool:
    """Return True if ``cancel`` is set."""
    return cancel is not None and cancel.is_set()


__all__ = ["BookmarkSource", "is_cancelled"]

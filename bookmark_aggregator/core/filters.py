"""
Filter Engine for Bookmark Aggregation.

This module provides composable bookmark filters and the engine that
applies a FilterRule to a list of records. Exclusion checks run in a
fixed order and the first matching check decides; warnings are advisory
and never remove a record.

Precedence:
    1. excluded URL scheme
    2. URL longer than the maximum length
    3. folder path outside the include list (when one is given)
    4. folder path inside the exclude list
    5. URL matching an exclude pattern
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Pattern, Tuple

from .data_models import BookmarkRecord, FilterOutcome, FilterRule

logger = logging.getLogger(__name__)


def extract_scheme(url: str) -> str:
    """
    Return the lowercase scheme of ``url``.

    The scheme is the text before the first ``:``. A URL without a colon,
    or one starting with a colon, has an empty scheme.
    """
    idx = url.find(":")
    if idx <= 0:
        return ""
    return url[:idx].lower()


class BookmarkFilter(ABC):
    """
    Abstract base class for bookmark filters.

    A filter can be negated with ~.
    """

    #: Short label used in log messages
    label = "filter"

    @abstractmethod
    def matches(self, record: BookmarkRecord) -> bool:
        """
        Check if a record matches this filter.

        Args:
            record: The record to check

        Returns:
            True if the record matches the filter criteria
        """
        pass

    def __invert__(self) -> "NotFilter":
        return NotFilter(self)


class NotFilter(BookmarkFilter):
    """Filter that negates another filter."""

    def __init__(self, filter_to_negate: BookmarkFilter):
        self.inner_filter = filter_to_negate
        self.label = f"not {filter_to_negate.label}"

    def matches(self, record: BookmarkRecord) -> bool:
        return not self.inner_filter.matches(record)


class SchemeFilter(BookmarkFilter):
    """Matches records whose URL scheme is one of the given schemes."""

    label = "scheme"

    def __init__(self, schemes: Iterable[str]):
        self.schemes = {s.lower().rstrip(":") for s in schemes if s}

    def matches(self, record: BookmarkRecord) -> bool:
        return bool(self.schemes) and extract_scheme(record.url) in self.schemes


class URLLengthFilter(BookmarkFilter):
    """Matches records whose URL is longer than ``max_length`` (0 disables)."""

    label = "url length"

    def __init__(self, max_length: int):
        self.max_length = max_length

    def matches(self, record: BookmarkRecord) -> bool:
        return self.max_length > 0 and len(record.url) > self.max_length


class FolderFilter(BookmarkFilter):
    """
    Matches records whose joined folder path contains any substring.

    The folder path is joined with ``/`` before matching, so a substring
    may span levels (``Work/Projects``).
    """

    label = "folder"

    def __init__(self, substrings: Iterable[str]):
        self.substrings = [s for s in substrings if s]

    def matches(self, record: BookmarkRecord) -> bool:
        path = record.get_folder_path("/")
        return any(s in path for s in self.substrings)


class URLPatternFilter(BookmarkFilter):
    """
    Matches records whose URL matches any of the given regular expressions.

    Patterns that fail to compile are skipped.
    """

    label = "url pattern"

    def __init__(self, patterns: Iterable[str]):
        self.patterns: List[Pattern[str]] = []
        for pattern in patterns:
            try:
                self.patterns.append(re.compile(pattern))
            except re.error as e:
                logger.debug(f"Skipping invalid URL pattern {pattern!r}: {e}")

    def matches(self, record: BookmarkRecord) -> bool:
        return any(p.search(record.url) for p in self.patterns)


class FilterEngine:
    """
    Applies a FilterRule to records.

    The rule is compiled once into an ordered list of exclusion filters
    and a list of warning filters, so one engine can be reused across
    collections.

    Example:
        >>> engine = FilterEngine(FilterRule(exclude_schemes=["javascript"]))
        >>> outcome = engine.apply(records)
        >>> print(outcome.excluded_count, len(outcome.kept))
    """

    def __init__(self, rule: FilterRule):
        self.rule = rule
        self.exclusions: List[BookmarkFilter] = self._compile_exclusions(rule)
        self._warn_schemes = SchemeFilter(rule.warn_schemes)
        self._warn_length = URLLengthFilter(rule.warn_url_length)

    @staticmethod
    def _compile_exclusions(rule: FilterRule) -> List[BookmarkFilter]:
        exclusions: List[BookmarkFilter] = []
        if rule.exclude_schemes:
            exclusions.append(SchemeFilter(rule.exclude_schemes))
        if rule.max_url_length > 0:
            exclusions.append(URLLengthFilter(rule.max_url_length))
        if rule.include_folders:
            exclusions.append(~FolderFilter(rule.include_folders))
        if rule.exclude_folders:
            exclusions.append(FolderFilter(rule.exclude_folders))
        if rule.exclude_url_patterns:
            exclusions.append(URLPatternFilter(rule.exclude_url_patterns))
        return exclusions

    def exclusion_for(self, record: BookmarkRecord) -> Optional[BookmarkFilter]:
        """Return the first exclusion filter matching ``record``, or None."""
        for exclusion in self.exclusions:
            if exclusion.matches(record):
                return exclusion
        return None

    def warnings_for(self, record: BookmarkRecord) -> List[str]:
        """Return advisory warnings for a kept record."""
        warnings = []
        title = record.get_effective_title()
        if self._warn_schemes.matches(record):
            warnings.append(
                f"bookmark '{_truncate(title, 40)}' uses scheme "
                f"'{extract_scheme(record.url)}': {_truncate(record.url, 60)}"
            )
        if self._warn_length.matches(record):
            warnings.append(
                f"bookmark '{_truncate(title, 40)}' has a long URL "
                f"({len(record.url)} > {self.rule.warn_url_length} characters)"
            )
        return warnings

    def apply(self, records: Iterable[BookmarkRecord]) -> FilterOutcome:
        """
        Filter records.

        Args:
            records: Records to filter

        Returns:
            FilterOutcome with kept records in input order
        """
        outcome = FilterOutcome()
        for record in records:
            exclusion = self.exclusion_for(record)
            if exclusion is not None:
                outcome.excluded_count += 1
                logger.debug(f"Excluded {record.url} ({exclusion.label})")
                continue
            outcome.kept.append(record)
            outcome.warnings.extend(self.warnings_for(record))

        if outcome.excluded_count:
            logger.info(f"Filtered out {outcome.excluded_count} bookmark(s)")
        return outcome


def apply_filters(records: Iterable[BookmarkRecord], rule: FilterRule) -> FilterOutcome:
    """Apply ``rule`` to ``records``. See FilterEngine."""
    return FilterEngine(rule).apply(records)


def deduplicate(records: Iterable[BookmarkRecord]) -> List[BookmarkRecord]:
    """
    Remove records whose URL was already seen.

    URLs are compared exactly. The first occurrence wins and order is
    preserved.
    """
    seen = set()
    unique = []
    for record in records:
        if record.url in seen:
            continue
        seen.add(record.url)
        unique.append(record)
    return unique


def sort_by_title(records: Iterable[BookmarkRecord]) -> List[BookmarkRecord]:
    """Stable case-insensitive sort by title."""
    return sorted(records, key=lambda r: r.title.lower())


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def filter_summary(outcome: FilterOutcome) -> Tuple[int, int, int]:
    """Return (kept, excluded, warnings) counts for reporting."""
    return len(outcome.kept), outcome.excluded_count, len(outcome.warnings)


__all__ = [
    "BookmarkFilter",
    "NotFilter",
    "SchemeFilter",
    "URLLengthFilter",
    "FolderFilter",
    "URLPatternFilter",
    "FilterEngine",
    "apply_filters",
    "deduplicate",
    "sort_by_title",
    "extract_scheme",
    "filter_summary",
]

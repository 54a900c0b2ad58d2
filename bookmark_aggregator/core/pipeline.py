"""
Pipeline Orchestrator

Runs one aggregation: resolve sources, read them into a Collection,
filter and transform the records, and render the result.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from ..utils.error_handler import (
    AggregatorError,
    ConfigInvalidError,
    EmptyResultError,
    InvalidFormatError,
    NotFoundError,
    ReadFailureError,
    RenderError,
    UnavailableError,
)
from .data_models import (
    Collection,
    FilterOutcome,
    FilterRule,
    ProfileInfo,
    RendererOptions,
    RenderOptions,
    SourceDescriptor,
    SourceOptions,
)
from .data_sources.protocol import BookmarkSource, is_cancelled
from .exporters.base import BookmarkRenderer
from .filters import FilterEngine, deduplicate, sort_by_title
from .registry import AdapterRegistry

# Order in which sources are tried when none is named, and read in all mode
SOURCE_PREFERENCE = ("chrome", "firefox", "edge", "safari", "chromium", "brave")

DEFAULT_PROFILE = "Default"


@dataclass
class PipelineRequest:
    """What one pipeline run should read, how to transform it and how to render it."""

    source: Optional[str] = None
    profile: Optional[str] = None
    all_sources: bool = False
    renderer: str = "markdown"
    filter_rule: FilterRule = field(default_factory=FilterRule)
    deduplicate: bool = False
    sort: bool = False
    render_options: RenderOptions = field(default_factory=RenderOptions)


@dataclass
class PipelineResult:
    """Results of one pipeline run."""

    output: bytes
    collection: Collection
    outcome: FilterOutcome
    source_count: int
    processing_time: float = 0.0


@dataclass
class SourceStatus:
    """Availability and profiles of one registered source."""

    name: str
    display_name: str
    available: bool
    path: str
    enabled: bool = True
    profiles: List[ProfileInfo] = field(default_factory=list)


class PipelineOrchestrator:
    """
    Orchestrates reading, filtering and rendering.

    The orchestrator never owns adapters: it looks them up in the registry
    it is given, and configures them from ``source_configs`` and
    ``renderer_configs`` before each use.

    Example:
        >>> orchestrator = PipelineOrchestrator(get_registry())
        >>> result = orchestrator.run(PipelineRequest(all_sources=True, renderer="json"))
        >>> sys.stdout.buffer.write(result.output)
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        source_configs: Optional[Mapping[str, SourceOptions]] = None,
        renderer_configs: Optional[Mapping[str, RendererOptions]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            registry: Registry to resolve sources and renderers from
            source_configs: Per-source options; missing names are enabled
                with no profile or path override
            renderer_configs: Per-renderer options
        """
        self.registry = registry
        self.source_configs = dict(source_configs or {})
        self.renderer_configs = dict(renderer_configs or {})
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Source resolution
    # ------------------------------------------------------------------

    def source_options(self, name: str) -> SourceOptions:
        """Return the configured options for ``name`` (enabled by default)."""
        return self.source_configs.get(name, SourceOptions())

    def ordered_source_names(self) -> List[str]:
        """Registered names in preference order, then the rest alphabetically."""
        registered = self.registry.list_source_names()
        preferred = [n for n in SOURCE_PREFERENCE if n in registered]
        rest = [n for n in registered if n not in SOURCE_PREFERENCE]
        return preferred + rest

    def resolve_default_source(self) -> Tuple[str, BookmarkSource]:
        """
        Pick the first registered, enabled and available preferred source.

        Raises:
            NotFoundError: If no preferred source qualifies
        """
        for name in SOURCE_PREFERENCE:
            source = self.registry.get_source(name)
            if source is None or not self.source_options(name).enabled:
                continue
            if source.available():
                return name, source
        raise NotFoundError("no bookmark source available")

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_single(
        self,
        name: Optional[str] = None,
        profile: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Collection:
        """
        Read one source.

        Args:
            name: Source name; the default source is chosen when omitted
            profile: Profile to read; falls back to the configured profile
                and then to "Default"
            cancel: Optional cancellation event

        Returns:
            Collection with a single descriptor (empty if cancelled first)

        Raises:
            NotFoundError: If the source is unknown or none is available
            UnavailableError: If the source has no data to read
            ConfigInvalidError: If the source rejects its options
            ReadFailureError: If the read fails
        """
        if name:
            source = self.registry.get_source(name)
            if source is None:
                raise NotFoundError(f"unknown source: {name}")
            name = name.lower()
        else:
            name, source = self.resolve_default_source()

        configured = self.source_options(name)
        resolved_profile = profile or configured.profile or DEFAULT_PROFILE
        options = SourceOptions(
            enabled=configured.enabled,
            profile=resolved_profile,
            custom_path=configured.custom_path,
            options=dict(configured.options),
        )

        try:
            source.configure(options)
        except ConfigInvalidError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigInvalidError("invalid source options", source_name=name, original_error=e)

        if not source.available():
            location = source.path or "the default location"
            raise UnavailableError(f"no bookmark data found at {location}", source_name=name)

        collection = Collection()
        if is_cancelled(cancel):
            self.logger.info("Read cancelled before it started")
            return collection

        self.logger.info(f"Reading {source.display_name} (profile {resolved_profile})")
        try:
            records = source.read(cancel)
        except ReadFailureError:
            raise
        except (AggregatorError, OSError, ValueError) as e:
            raise ReadFailureError("read failed", source_name=name, original_error=e)

        collection.add(
            records,
            SourceDescriptor(name=name, profile=resolved_profile, path=source.path),
        )
        self.logger.info(f"Read {len(records)} bookmarks from {name}")
        return collection

    def read_all(self, cancel: Optional[threading.Event] = None) -> Collection:
        """
        Read every enabled and available source, all profiles each.

        Sources that fail are logged and skipped. Sources that return no
        records contribute no descriptor. A cancelled run returns what was
        collected so far.
        """
        collection = Collection()

        for name in self.ordered_source_names():
            if is_cancelled(cancel):
                self.logger.info(f"Read cancelled after {len(collection.sources)} source(s)")
                break

            source = self.registry.get_source(name)
            if source is None:
                continue
            configured = self.source_options(name)
            if not configured.enabled:
                self.logger.debug(f"Skipping disabled source {name}")
                continue

            try:
                source.configure(
                    SourceOptions(
                        enabled=True,
                        profile="",
                        custom_path=configured.custom_path,
                        options=dict(configured.options),
                    )
                )
                if not source.available():
                    self.logger.debug(f"Skipping unavailable source {name}")
                    continue
                records = source.read(cancel)
            except AggregatorError as e:
                self.logger.warning(f"Skipping {name}: {e}")
                continue
            except Exception as e:
                self.logger.warning(f"Skipping {name}: unexpected error: {e}", exc_info=True)
                continue

            if not records:
                continue

            # All-profile reads are labelled with the first record's profile
            descriptor = SourceDescriptor(name=name, profile=records[0].profile, path=source.path)
            collection.add(records, descriptor)
            self.logger.info(f"Read {len(records)} bookmarks from {name}")

        return collection

    def collect(
        self, request: PipelineRequest, cancel: Optional[threading.Event] = None
    ) -> Collection:
        """
        Read according to ``request``.

        Raises:
            EmptyResultError: If nothing was collected
        """
        if request.all_sources:
            collection = self.read_all(cancel)
        else:
            collection = self.read_single(request.source, request.profile, cancel)

        if len(collection) == 0:
            if is_cancelled(cancel):
                raise EmptyResultError("cancelled before any bookmarks were read")
            raise EmptyResultError("no bookmarks found")
        return collection

    # ------------------------------------------------------------------
    # Transform and render
    # ------------------------------------------------------------------

    def transform(
        self, collection: Collection, request: PipelineRequest
    ) -> Tuple[Collection, FilterOutcome]:
        """Filter, then optionally deduplicate and sort; counts are recomputed."""
        outcome = FilterEngine(request.filter_rule).apply(collection.bookmarks)
        for warning in outcome.warnings:
            self.logger.warning(warning)

        records = outcome.kept
        if request.deduplicate:
            before = len(records)
            records = deduplicate(records)
            if before != len(records):
                self.logger.info(f"Removed {before - len(records)} duplicate bookmark(s)")
        if request.sort:
            records = sort_by_title(records)

        return collection.narrowed(records), outcome

    def resolve_renderer(self, name: str) -> BookmarkRenderer:
        """
        Look up and configure a renderer.

        Raises:
            InvalidFormatError: If no renderer is registered under ``name``
        """
        renderer = self.registry.get_renderer(name)
        if renderer is None:
            available = ", ".join(self.registry.list_renderer_names())
            raise InvalidFormatError(f"unknown output format: {name} (available: {available})")
        renderer.configure(self.renderer_configs.get(name.lower(), RendererOptions()))
        return renderer

    def render(
        self, collection: Collection, renderer_name: str, render_options: RenderOptions
    ) -> bytes:
        """
        Render a collection.

        Raises:
            InvalidFormatError: If the renderer is unknown
            RenderError: If the renderer fails
        """
        renderer = self.resolve_renderer(renderer_name)
        return self._render_with(renderer, collection, render_options)

    def _render_with(
        self, renderer: BookmarkRenderer, collection: Collection, render_options: RenderOptions
    ) -> bytes:
        try:
            return renderer.render(collection, render_options)
        except RenderError:
            raise
        except (AggregatorError, TypeError, ValueError) as e:
            raise RenderError("render failed", source_name=renderer.name, original_error=e)

    def run(
        self, request: PipelineRequest, cancel: Optional[threading.Event] = None
    ) -> PipelineResult:
        """
        Execute a full read, transform and render.

        The renderer is resolved before any source is read so an unknown
        format fails without touching the sources.
        """
        start_time = time.time()
        renderer = self.resolve_renderer(request.renderer)

        collection = self.collect(request, cancel)
        transformed, outcome = self.transform(collection, request)
        output = self._render_with(renderer, transformed, request.render_options)

        elapsed = time.time() - start_time
        self.logger.info(
            f"Rendered {len(transformed)} bookmarks from "
            f"{len(transformed.sources)} source(s) as {request.renderer} in {elapsed:.2f}s"
        )
        return PipelineResult(
            output=output,
            collection=transformed,
            outcome=outcome,
            source_count=len(transformed.sources),
            processing_time=elapsed,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def describe_sources(self) -> List[SourceStatus]:
        """Report every registered source with its availability and profiles."""
        statuses = []
        for name in self.ordered_source_names():
            source = self.registry.get_source(name)
            if source is None:
                continue
            configured = self.source_options(name)
            profiles: List[ProfileInfo] = []
            try:
                source.configure(
                    SourceOptions(
                        enabled=configured.enabled,
                        profile="",
                        custom_path=configured.custom_path,
                        options=dict(configured.options),
                    )
                )
                available = source.available()
                if available:
                    profiles = source.list_profiles()
            except (AggregatorError, OSError) as e:
                self.logger.warning(f"Cannot list profiles for {name}: {e}")
                available = False
            statuses.append(
                SourceStatus(
                    name=name,
                    display_name=source.display_name,
                    available=available,
                    path=source.path,
                    enabled=self.source_options(name).enabled,
                    profiles=profiles,
                )
            )
        return statuses

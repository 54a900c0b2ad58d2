"""
Adapter Registry

Central registry mapping names to source readers and renderers.
Lookups take the lock in shared mode and registrations take it
exclusively, so the registry can be read from the server loop while a
test or a plugin registers a replacement adapter.
"""

import logging
from typing import Dict, List, Optional

from ..utils.locking import ReadWriteLock
from .data_sources.protocol import BookmarkSource
from .exporters.base import BookmarkRenderer


class AdapterRegistry:
    """
    Name-keyed tables of source readers and renderers.

    Names are stored lowercase. Registering a name that is already bound
    replaces the previous adapter.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger("adapter.registry")
        self._lock = ReadWriteLock()
        self._sources: Dict[str, BookmarkSource] = {}
        self._renderers: Dict[str, BookmarkRenderer] = {}

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def register_source(self, name: str, source: BookmarkSource) -> None:
        """
        Bind a source reader to a name.

        Args:
            name: Source identifier
            source: Reader implementing the BookmarkSource protocol
        """
        key = name.lower()
        with self._lock.write():
            if key in self._sources:
                self._logger.warning(f"Source {key} already registered, replacing")
            self._sources[key] = source
        self._logger.debug(f"Registered source: {key}")

    def unregister_source(self, name: str) -> bool:
        """Remove a source. Returns True if it was registered."""
        with self._lock.write():
            return self._sources.pop(name.lower(), None) is not None

    def get_source(self, name: str) -> Optional[BookmarkSource]:
        """Return the source bound to ``name`` or None."""
        with self._lock.read():
            return self._sources.get(name.lower())

    def has_source(self, name: str) -> bool:
        with self._lock.read():
            return name.lower() in self._sources

    def list_source_names(self) -> List[str]:
        """Return registered source names, sorted."""
        with self._lock.read():
            return sorted(self._sources)

    def available_sources(self) -> List[BookmarkSource]:
        """Return registered sources whose data is present, sorted by name."""
        with self._lock.read():
            entries = sorted(self._sources.items())
        return [source for _, source in entries if source.available()]

    # ------------------------------------------------------------------
    # Renderers
    # ------------------------------------------------------------------

    def register_renderer(self, name: str, renderer: BookmarkRenderer) -> None:
        """
        Bind a renderer to a name.

        Args:
            name: Output format identifier
            renderer: Renderer implementing the BookmarkRenderer protocol
        """
        key = name.lower()
        with self._lock.write():
            if key in self._renderers:
                self._logger.warning(f"Renderer {key} already registered, replacing")
            self._renderers[key] = renderer
        self._logger.debug(f"Registered renderer: {key}")

    def unregister_renderer(self, name: str) -> bool:
        """Remove a renderer. Returns True if it was registered."""
        with self._lock.write():
            return self._renderers.pop(name.lower(), None) is not None

    def get_renderer(self, name: str) -> Optional[BookmarkRenderer]:
        """Return the renderer bound to ``name`` or None."""
        with self._lock.read():
            return self._renderers.get(name.lower())

    def has_renderer(self, name: str) -> bool:
        with self._lock.read():
            return name.lower() in self._renderers

    def list_renderer_names(self) -> List[str]:
        """Return registered renderer names, sorted."""
        with self._lock.read():
            return sorted(self._renderers)

    def clear(self) -> None:
        """Remove every registered adapter."""
        with self._lock.write():
            self._sources.clear()
            self._renderers.clear()

    def __repr__(self) -> str:
        return (
            f"AdapterRegistry(sources={self.list_source_names()}, "
            f"renderers={self.list_renderer_names()})"
        )


# Global registry instance
_global_registry: Optional[AdapterRegistry] = None


def get_registry() -> AdapterRegistry:
    """
    Get the process-wide registry, populated with the built-in adapters.

    Returns:
        Global AdapterRegistry instance
    """
    global _global_registry
    if _global_registry is None:
        from .adapters import register_builtin_adapters

        _global_registry = AdapterRegistry()
        register_builtin_adapters(_global_registry)
    return _global_registry


def reset_registry() -> None:
    """Reset the global registry (for testing)."""
    global _global_registry
    _global_registry = None


__all__ = [
    "AdapterRegistry",
    "get_registry",
    "reset_registry",
]

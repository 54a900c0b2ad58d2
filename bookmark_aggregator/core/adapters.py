"""
Registration of the built-in sources and renderers.
"""

import logging

from .data_sources import ChromiumSource, FileImportSource, FirefoxSource, SafariSource
from .data_sources.chromium import CHROMIUM_PATHS
from .exporters import RENDERERS
from .registry import AdapterRegistry

logger = logging.getLogger(__name__)


def register_builtin_adapters(registry: AdapterRegistry) -> AdapterRegistry:
    """
    Register every built-in source and renderer on ``registry``.

    Args:
        registry: Registry to populate

    Returns:
        The same registry, for chaining
    """
    for browser in CHROMIUM_PATHS:
        registry.register_source(browser, ChromiumSource(browser))
    registry.register_source(FirefoxSource.name, FirefoxSource())
    registry.register_source(SafariSource.name, SafariSource())
    registry.register_source(FileImportSource.name, FileImportSource())

    for name, renderer_class in RENDERERS.items():
        registry.register_renderer(name, renderer_class())

    logger.debug(
        f"Registered {len(registry.list_source_names())} sources and "
        f"{len(registry.list_renderer_names())} renderers"
    )
    return registry

"""
Core bookmark aggregation modules.

This package contains the record model, adapter registry, filter engine,
pipeline orchestrator, the built-in sources and renderers, and the MCP
server.
"""

from .data_models import BookmarkRecord, Collection, FilterRule, RenderOptions
from .pipeline import PipelineOrchestrator, PipelineRequest
from .registry import AdapterRegistry, get_registry, reset_registry

__all__ = [
    "AdapterRegistry",
    "BookmarkRecord",
    "Collection",
    "FilterRule",
    "PipelineOrchestrator",
    "PipelineRequest",
    "RenderOptions",
    "get_registry",
    "reset_registry",
]

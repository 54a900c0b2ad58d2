"""
Bookmark renderers.

This module provides renderers for JSON, YAML, Markdown, OPML and Netscape
bookmark HTML output.
"""

from .base import BaseRenderer, BookmarkRenderer
from .html_renderer import NetscapeHTMLRenderer
from .json_renderer import JSONRenderer
from .markdown_renderer import MarkdownRenderer
from .opml_renderer import OPMLRenderer
from .yaml_renderer import YAMLRenderer

__all__ = [
    "BaseRenderer",
    "BookmarkRenderer",
    "JSONRenderer",
    "MarkdownRenderer",
    "NetscapeHTMLRenderer",
    "OPMLRenderer",
    "YAMLRenderer",
]


# Format registry used by register_builtin_adapters
RENDERERS = {
    "json": JSONRenderer,
    "yaml": YAMLRenderer,
    "markdown": MarkdownRenderer,
    "opml": OPMLRenderer,
    "html": NetscapeHTMLRenderer,
}
